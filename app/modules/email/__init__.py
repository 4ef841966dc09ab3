"""
Módulo de email: servicio SMTP con templates Jinja2 y tareas Celery.
"""

from .service import email_service

__all__ = ['email_service']
