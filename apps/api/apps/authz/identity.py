"""
Identity resolution: session token -> account id.

Tokens are simplejwt access tokens. Resolution is read-only.
"""
from django.contrib.auth import get_user_model
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken

from apps.core.exceptions import Unauthenticated


class IdentityResolver:
    """Maps a bearer token (or an authenticated request) to an account id."""

    def __init__(self, using='default'):
        self.using = using

    def resolve_token(self, raw_token):
        """
        Validate ``raw_token`` and return the id of the active account it names.

        Missing, malformed, expired or revoked tokens and tokens of inactive
        or deleted accounts all raise Unauthenticated.
        """
        if not raw_token:
            raise Unauthenticated()

        try:
            token = AccessToken(raw_token)
        except TokenError:
            raise Unauthenticated()

        user_id = token.get(api_settings.USER_ID_CLAIM)
        if user_id is None:
            raise Unauthenticated()

        User = get_user_model()
        try:
            user = User.objects.using(self.using).only('id', 'is_active').get(
                **{api_settings.USER_ID_FIELD: user_id}
            )
        except (User.DoesNotExist, ValueError):
            raise Unauthenticated()

        if not user.is_active:
            raise Unauthenticated()
        return user.id

    def resolve_request(self, request):
        """Return the account id of a DRF request whose authenticators already ran."""
        user = getattr(request, 'user', None)
        if user is None or not user.is_authenticated or not user.is_active:
            raise Unauthenticated()
        return user.id
