import logging
import sys

from django.contrib.auth.models import User
from django.contrib.auth.signals import user_logged_in, user_logged_out
from django.db.models.signals import post_save
from django.dispatch import receiver

from .identity import SESSION_KEY, identity_from_user, identity_to_session
from .models import Profile

logger = logging.getLogger(__name__)


@receiver(post_save, sender=User)
def create_or_update_user_profile(sender, instance, created, **kwargs):
    # Skip during loaddata to avoid duplicate errors
    if "loaddata" in sys.argv:
        return

    if created:
        Profile.objects.create(user=instance)
    elif not Profile.objects.filter(user=instance).exists():
        Profile.objects.create(user=instance)


@receiver(user_logged_in)
def store_identity_on_login(sender, user, request, **kwargs):
    """Write the navigation identity into the session.

    The identity is rebuilt on every login so a role change made by an admin
    takes effect the next time the user signs in.
    """
    if request is None:
        return

    identity = identity_from_user(user)
    if identity is None:
        return
    request.session[SESSION_KEY] = identity_to_session(identity)
    logger.info(
        "Stored %s identity for user %s (school=%s)",
        identity.kind,
        user.pk,
        identity.school_code or "-",
    )


@receiver(user_logged_out)
def clear_identity_on_logout(sender, request, user, **kwargs):
    if request is None:
        return
    request.session.pop(SESSION_KEY, None)
    logger.info("Cleared identity for user %s", getattr(user, "pk", None))

