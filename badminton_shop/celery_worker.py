# badminton_shop/celery_worker.py
from celery import Celery
from celery.signals import worker_process_init

from badminton_shop.utils.logging import install_crash_handler
from badminton_shop.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    CRASH_HANDLER_ENABLED,
    CRASH_LOG_PATH,
)

celery_app = Celery(
    "badminton_shop",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# tasks live outside this module and must be imported explicitly to register
celery_app.conf.imports = (
    "badminton_shop.tasks.maintenance",
    "badminton_shop.services.notification_service",
)

celery_app.conf.beat_schedule = {
    "dispatch-pending-emails-every-minute": {
        "task": "badminton_shop.services.notification_service.dispatch_pending_emails",
        "schedule": 60.0,
    },
    "purge-guest-carts-hourly": {
        "task": "badminton_shop.tasks.maintenance.purge_guest_carts",
        "schedule": 3600.0,
    },
    "deactivate-expired-coupons-hourly": {
        "task": "badminton_shop.tasks.maintenance.deactivate_expired_coupons",
        "schedule": 3600.0,
    },
}

celery_app.conf.timezone = "UTC"


@worker_process_init.connect
def _install_crash_handler(**kwargs):
    if CRASH_HANDLER_ENABLED:
        install_crash_handler(CRASH_LOG_PATH)
