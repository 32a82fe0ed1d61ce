from django.urls import include, path

from . import views

urlpatterns = [
    path('', views.index, name='index'),
    path('api/payments/', include('payments.urls')),
]
