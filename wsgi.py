"""WSGI entry point: ``gunicorn -c deployment/gunicorn_config.py wsgi:app``"""
from app import create_app

app = create_app('production')
