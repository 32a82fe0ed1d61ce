from django.urls import path, re_path
from . import views

urlpatterns = [
    re_path(r'^mpesa/stkpush/?$', views.mpesa_stk_push, name='mpesa_stk_push'),
    re_path(r'^mpesa/callback/?$', views.mpesa_callback, name='mpesa_callback'),
    path('mpesa/status/<str:checkout_request_id>', views.mpesa_status, name='mpesa_status'),
    path('mpesa/status/<str:checkout_request_id>/', views.mpesa_status),
]
