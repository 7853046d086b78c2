from django.urls import path
from . import views

app_name = 'accounts'

urlpatterns = [
    # Authentication
    path('register/', views.register, name='register'),
    path('login/', views.login, name='login'),
    path('logout/', views.logout, name='logout'),

    # User profile
    path('me/', views.get_current_user, name='current-user'),
    path('me/update/', views.update_details, name='update-details'),
    path('me/password/', views.update_password, name='update-password'),

    # Email verification
    path('verify-email/', views.verify_email, name='verify-email'),
    path('verify-email/resend/', views.resend_verification, name='resend-verification'),

    # Phone verification
    path('phone/otp/', views.request_phone_otp, name='phone-otp'),
    path('phone/verify/', views.verify_phone, name='phone-verify'),

    # Password reset
    path('password-reset/', views.request_password_reset, name='password-reset'),
    path('password-reset/confirm/', views.confirm_password_reset, name='password-reset-confirm'),

    # Referral programme
    path('referral/', views.referral_details, name='referral'),
]
