from django import forms
from django.contrib.auth.forms import AuthenticationForm


class LoginForm(AuthenticationForm):
    """Email + password login."""

    username = forms.EmailField(label="Email")

    error_messages = {
        'invalid_login': "Invalid email or password.",
        'inactive': "This account is inactive. Contact your administrator.",
    }

    def confirm_login_allowed(self, user):
        super().confirm_login_allowed(user)
        if user.status == user.Status.INACTIVE:
            raise forms.ValidationError(self.error_messages['inactive'], code='inactive')
