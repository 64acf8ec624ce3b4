"""Connecteurs de certification MECeF."""
