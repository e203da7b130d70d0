"""
Kafka Event Publisher

Publishes pre-encoded envelopes with confluent-kafka's AsyncIO producer.

- The producer is created lazily by a ConnectionSupervisor on first publish;
  concurrent publishers wait for that single connect instead of racing.
- Every publish awaits the broker's delivery report within a bounded timeout.
- Any produce or delivery failure drops the producer (next publish
  reconnects) and surfaces as BrokerUnavailableError; nothing is buffered
  here, durable retry is the outbox's job.
- AIOProducer batch mode rejects message headers; consumers route on the
  envelope's `event` field.
"""

from typing import Any, Callable, Optional

import anyio
import anyio.to_thread
from confluent_kafka.experimental.aio import AIOProducer

from src.platform.connection.connection_supervisor import ConnectionSupervisor
from src.platform.exception.exceptions import BrokerUnavailableError
from src.platform.logging.loguru_io import Logger
from src.platform.message_queue.kafka_topic_initializer import KafkaTopicInitializer


class KafkaEventPublisher:
    def __init__(
        self,
        *,
        producer_config: dict,
        supervisor_factory: Callable[..., ConnectionSupervisor],
        publish_timeout: float,
        topic_initializer: Optional[KafkaTopicInitializer] = None,
        producer_factory: Callable[[dict], Any] = AIOProducer,
    ) -> None:
        self._producer_config = producer_config
        self._publish_timeout = publish_timeout
        self._topic_initializer = topic_initializer
        self._producer_factory = producer_factory
        self.supervisor: ConnectionSupervisor[Any] = supervisor_factory(
            name='message-broker',
            connector=self._connect,
            closer=self._close,
            unavailable_error=BrokerUnavailableError,
        )

    async def _connect(self) -> Any:
        if self._topic_initializer is not None:
            await anyio.to_thread.run_sync(self._topic_initializer.ensure_topics_exist)
        return self._producer_factory(self._producer_config)

    @staticmethod
    async def _close(producer: Any) -> None:
        await producer.flush()
        await producer.close()

    @Logger.io(truncate_content=True)
    async def publish(self, *, topic: str, key: str, value: bytes, routing_key: str) -> None:
        """
        Send one message and wait for its delivery report.

        Raises:
            BrokerUnavailableError: broker unreachable, degraded, or delivery not confirmed in time
        """
        producer = await self.supervisor.acquire()
        try:
            with anyio.fail_after(self._publish_timeout):
                delivery = await producer.produce(topic=topic, key=key, value=value)
                await delivery
        except Exception as e:
            await self.supervisor.mark_failed(producer, e)
            raise BrokerUnavailableError(f'Publish of {routing_key} to {topic} failed: {e}') from e

        Logger.base.info(f'📤 Published {routing_key} to {topic} (key={key})')

    async def start(self) -> None:
        await self.supervisor.start()

    async def stop(self) -> None:
        await self.supervisor.stop()
