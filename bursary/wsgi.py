"""
WSGI config for the bursary project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'bursary.settings')

application = get_wsgi_application()
