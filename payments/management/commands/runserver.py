from django.conf import settings
from django.core.management.commands.runserver import Command as RunserverCommand


class Command(RunserverCommand):
    # `manage.py runserver` with no address listens on PORT
    default_port = str(settings.PORT)
