"""Intégration Django : modèles, stockage, vues JSON et tâches Celery."""
