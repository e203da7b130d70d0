"""
Kafka Topic Initializer

Doubles as the broker reachability check: AIOProducer connects lazily, so
the connection supervisor asks the AdminClient for metadata before it
declares the broker connected. Missing family topics are created on the way.
"""

from confluent_kafka import KafkaError, KafkaException
from confluent_kafka.admin import AdminClient, NewTopic

from src.platform.logging.loguru_io import Logger
from src.platform.message_queue.kafka_constant_builder import KafkaTopicBuilder


class KafkaTopicInitializer:
    def __init__(
        self,
        *,
        bootstrap_servers: str,
        partitions: int,
        replication_factor: int,
        timeout: float,
    ) -> None:
        self.bootstrap_servers = bootstrap_servers
        self.partitions = partitions
        self.replication_factor = replication_factor
        self.timeout = timeout

    def ensure_topics_exist(self) -> None:
        """Blocking; raises KafkaException when the broker cannot be reached."""
        admin_client = AdminClient({'bootstrap.servers': self.bootstrap_servers})
        existing_topics = set(admin_client.list_topics(timeout=self.timeout).topics.keys())
        topics_to_create = [
            topic for topic in KafkaTopicBuilder.get_all_topics() if topic not in existing_topics
        ]
        if not topics_to_create:
            return

        Logger.base.info(f'📝 [TOPIC-INIT] Creating topics: {topics_to_create}')
        futures = admin_client.create_topics(
            [
                NewTopic(
                    topic=topic,
                    num_partitions=self.partitions,
                    replication_factor=self.replication_factor,
                    config={'cleanup.policy': 'delete', 'retention.ms': '604800000'},  # 7 days
                )
                for topic in topics_to_create
            ],
            request_timeout=self.timeout,
        )
        for topic, future in futures.items():
            try:
                future.result()
                Logger.base.info(f'✅ [TOPIC-INIT] Created topic: {topic}')
            except KafkaException as e:
                # Another replica may have created it first
                if e.args[0].code() != KafkaError.TOPIC_ALREADY_EXISTS:
                    raise
