"""Cycle de vie des factures et certification fiscale e-MECeF.

FR: Numérotation légale séquentielle, calcul HT/TVA/TTC en décimal,
    machine à états de finalisation et certification auprès du
    dispositif MECeF (Bénin).
EN: Legal sequential numbering, decimal HT/VAT/TTC computation,
    finalization state machine and MECeF fiscal certification (Benin).
"""

__version__ = "0.1.0"
