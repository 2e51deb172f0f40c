class NotFoundError(LookupError):
    """Enregistrement référencé introuvable (traduit en 404)"""
