"""Django signals for check-ins.

`checkin_passed` is sent with `record=CheckinRecord` the first time a
check-in is written as passed. Reward, badge and notification apps
subscribe to it.
"""

from django.core.cache import cache
from django.db.models.signals import post_delete, post_save
from django.dispatch import Signal, receiver

from checkins.models import Venue
from checkins.stores.django_store import venue_cache_key

checkin_passed = Signal()


@receiver([post_save, post_delete], sender=Venue)
def invalidate_venue_cache(sender, instance, **kwargs):
    """Invalidate the cached venue when it is saved or deleted."""
    cache.delete(venue_cache_key(instance.pk))
