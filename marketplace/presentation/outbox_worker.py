import asyncio
import logging

from marketplace.database import get_session_factory
from marketplace.infrastructure.unit_of_work import UnitOfWork
from marketplace.infrastructure.kafka_producer import KafkaProducerClient
from marketplace.application.process_outbox import ProcessOutboxEventsUseCase
from marketplace.domain.exceptions import InfrastructureError
from marketplace.config import settings

logger = logging.getLogger(__name__)


async def outbox_worker(kafka_producer: KafkaProducerClient):
    """Polls the outbox and publishes order events"""
    logger.info("Outbox worker started")

    uow = UnitOfWork(get_session_factory())
    use_case = ProcessOutboxEventsUseCase(
        unit_of_work=uow,
        event_publisher=kafka_producer
    )

    while True:
        try:
            processed = await use_case(limit=settings.OUTBOX_BATCH_SIZE)
            if processed:
                logger.info(f"Published {processed} outbox events")

            await asyncio.sleep(settings.OUTBOX_POLL_INTERVAL)

        except InfrastructureError as e:
            logger.error(f"Outbox worker error: {e}", exc_info=True)
            await asyncio.sleep(settings.OUTBOX_POLL_INTERVAL * 3)


async def main():
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    kafka_producer = KafkaProducerClient(settings.KAFKA_BOOTSTRAP_SERVERS, settings.ORDER_EVENTS_TOPIC)
    await kafka_producer.start()
    try:
        await outbox_worker(kafka_producer)
    finally:
        await kafka_producer.stop()


if __name__ == "__main__":
    asyncio.run(main())
