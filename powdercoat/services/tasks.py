from celery import Celery
from powdercoat.core.config import settings

celery_app = Celery(
    "worker",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_BACKEND,
)
celery_app.conf.task_routes = {"powdercoat.services.tasks.send_order_notification": {"queue": "email"}}
celery_app.conf.task_ignore_result = True

@celery_app.task
def send_order_notification(user_id: int, order_id: int, order_number: str, new_status: str, user_email=None):
    import asyncio
    from powdercoat.services.tasks_internal import send_order_notification_async

    asyncio.run(send_order_notification_async(user_id, order_id, order_number, new_status, user_email))
