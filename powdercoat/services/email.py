import httpx
import asyncio
import logging
import time
from powdercoat.core.config import settings
from powdercoat.core.metrics import email_deliveries, email_duration

logger = logging.getLogger(__name__)


async def send_email(to: str, subject: str, html: str, retries: int | None = None) -> bool:

    if not settings.EMAIL_API_KEY:
        logger.error("EMAIL_API_KEY not configured, skipping email")
        return False

    if retries is None:
        retries = settings.EMAIL_RETRIES
    
    backoff = 1.0
    payload = {
        "from": settings.EMAIL_FROM,
        "to": [to],
        "subject": subject,
        "html": html,
    }
    headers = {"Authorization": f"Bearer {settings.EMAIL_API_KEY}"}
    
    for attempt in range(1, retries + 1):
        start_time = time.time()
        try:
            async with httpx.AsyncClient(timeout=settings.EMAIL_TIMEOUT) as client:
                response = await client.post(settings.EMAIL_API_URL, json=payload, headers=headers)
                
                if 200 <= response.status_code < 300:
                    email_deliveries.labels(status="success").inc()
                    email_duration.labels(status="success").observe(time.time() - start_time)
                    logger.info(f"Email '{subject}' sent to {to}")
                    return True
                else:
                    logger.warning(
                        f"Email delivery failed (attempt {attempt}/{retries}): "
                        f"Status {response.status_code} for '{subject}'"
                    )
        except httpx.TimeoutException:
            logger.warning(f"Email timeout (attempt {attempt}/{retries}) for '{subject}'")
        except Exception as e:
            logger.warning(f"Email delivery error (attempt {attempt}/{retries}): {e} for '{subject}'")
        
        email_deliveries.labels(status="error").inc()
        email_duration.labels(status="error").observe(time.time() - start_time)
        if attempt < retries:
            await asyncio.sleep(backoff)
            backoff *= 2.0
    
    logger.error(f"Email delivery failed after {retries} attempts for '{subject}'")
    return False
