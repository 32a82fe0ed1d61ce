from django.conf import settings
from django.http import JsonResponse


def index(request):
    return JsonResponse({"ok": True, "service": settings.SERVICE_NAME})
