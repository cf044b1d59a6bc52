from django.urls import path, include


urlpatterns = [
    path('', include('core.urls')),
    path('accounts/', include('accounts.urls')),
    path('students/', include('students.urls')),
    path('academics/', include('academics.urls')),
    path('gradebook/', include('gradebook.urls')),
    path('finance/', include('finance.urls')),
]
