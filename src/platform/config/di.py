"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings
from src.platform.connection.backoff_policy import BackoffPolicy
from src.platform.connection.connection_supervisor import ConnectionSupervisor
from src.platform.database.asyncpg_setting import PostgresDocumentStore
from src.platform.message_queue.event_publisher import KafkaEventPublisher
from src.platform.message_queue.kafka_topic_initializer import KafkaTopicInitializer
from src.service.booking.app.booking_orchestrator import BookingOrchestrator
from src.service.booking.app.command.advance_booking_status_use_case import (
    AdvanceBookingStatusUseCase,
)
from src.service.booking.app.command.booking_transition_runner import BookingTransitionRunner
from src.service.booking.app.command.cancel_booking_use_case import CancelBookingUseCase
from src.service.booking.app.command.create_booking_use_case import CreateBookingUseCase
from src.service.booking.app.command.dispatch_outbox_use_case import DispatchOutboxUseCase
from src.service.booking.app.command.review_booking_use_case import ReviewBookingUseCase
from src.service.booking.app.command.update_booking_use_case import UpdateBookingUseCase
from src.service.booking.app.query.get_booking_use_case import GetBookingUseCase
from src.service.booking.app.query.list_bookings_use_case import ListBookingsUseCase
from src.service.booking.driven_adapter.message_queue.booking_event_publisher_impl import (
    BookingEventPublisherImpl,
)
from src.service.booking.driven_adapter.repo.booking_command_repo_impl import (
    BookingCommandRepoImpl,
)
from src.service.booking.driven_adapter.repo.booking_query_repo_impl import BookingQueryRepoImpl
from src.service.booking.driven_adapter.repo.outbox_repo_impl import OutboxRepoImpl
from src.service.booking.driven_adapter.repo.service_catalog_impl import ServiceCatalogImpl
from src.service.booking.driving_adapter.outbox_dispatcher import OutboxDispatcher


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Connection supervision: one supervisor per connection, built by its owner
    backoff_policy = providers.Singleton(
        BackoffPolicy,
        base_delay=config_service.provided.RECONNECT_BASE_DELAY_SECONDS,
        max_delay=config_service.provided.RECONNECT_MAX_DELAY_SECONDS,
        max_retries=config_service.provided.RECONNECT_MAX_RETRIES,
        jitter=config_service.provided.RECONNECT_JITTER,
    )
    connection_supervisor_factory = providers.Factory(
        ConnectionSupervisor,
        backoff=backoff_policy,
        connect_timeout=config_service.provided.CONNECT_TIMEOUT_SECONDS,
        acquire_timeout=config_service.provided.ACQUIRE_TIMEOUT_SECONDS,
    )

    # Document store (PostgreSQL JSONB via asyncpg)
    document_store = providers.Singleton(
        PostgresDocumentStore,
        dsn=config_service.provided.DATABASE_URL,
        supervisor_factory=connection_supervisor_factory.provider,
        pool_floor=config_service.provided.ASYNCPG_POOL_FLOOR,
        pool_ceiling=config_service.provided.ASYNCPG_POOL_CEILING,
        command_timeout=config_service.provided.ASYNCPG_POOL_COMMAND_TIMEOUT,
        max_inactive_lifetime=config_service.provided.ASYNCPG_POOL_MAX_INACTIVE_LIFETIME,
    )

    # Message broker (Kafka)
    kafka_topic_initializer = providers.Singleton(
        KafkaTopicInitializer,
        bootstrap_servers=config_service.provided.KAFKA_BOOTSTRAP_SERVERS,
        partitions=config_service.provided.KAFKA_TOPIC_PARTITIONS,
        replication_factor=config_service.provided.KAFKA_REPLICATION_FACTOR,
        timeout=config_service.provided.CONNECT_TIMEOUT_SECONDS,
    )
    kafka_event_publisher = providers.Singleton(
        KafkaEventPublisher,
        producer_config=config_service.provided.KAFKA_PRODUCER_CONFIG,
        supervisor_factory=connection_supervisor_factory.provider,
        publish_timeout=config_service.provided.KAFKA_PUBLISH_TIMEOUT_SECONDS,
        topic_initializer=kafka_topic_initializer,
    )

    # Repositories
    booking_command_repo = providers.Singleton(
        BookingCommandRepoImpl,
        store=document_store,
        outbox_claim_lease_seconds=config_service.provided.OUTBOX_CLAIM_LEASE_SECONDS,
    )
    booking_query_repo = providers.Singleton(BookingQueryRepoImpl, store=document_store)
    outbox_repo = providers.Singleton(
        OutboxRepoImpl,
        store=document_store,
        claim_lease_seconds=config_service.provided.OUTBOX_CLAIM_LEASE_SECONDS,
    )
    service_catalog = providers.Singleton(ServiceCatalogImpl, store=document_store)

    # Message Queue Publishers
    booking_event_publisher = providers.Singleton(
        BookingEventPublisherImpl, kafka_event_publisher=kafka_event_publisher
    )

    # Use cases (stateless, can be Singleton)
    transition_runner = providers.Singleton(
        BookingTransitionRunner,
        booking_command_repo=booking_command_repo,
        service_name=config_service.provided.SERVICE_NAME,
        max_stale_retries=config_service.provided.STALE_STATE_MAX_RETRIES,
    )
    create_booking_use_case = providers.Singleton(
        CreateBookingUseCase,
        booking_command_repo=booking_command_repo,
        service_catalog=service_catalog,
        service_name=config_service.provided.SERVICE_NAME,
        time_zone=config_service.provided.BOOKING_TIME_ZONE,
    )
    cancel_booking_use_case = providers.Singleton(
        CancelBookingUseCase, transition_runner=transition_runner
    )
    review_booking_use_case = providers.Singleton(
        ReviewBookingUseCase, transition_runner=transition_runner
    )
    update_booking_use_case = providers.Singleton(
        UpdateBookingUseCase, transition_runner=transition_runner
    )
    advance_booking_status_use_case = providers.Singleton(
        AdvanceBookingStatusUseCase, transition_runner=transition_runner
    )
    dispatch_outbox_use_case = providers.Singleton(
        DispatchOutboxUseCase,
        outbox_repo=outbox_repo,
        event_publisher=booking_event_publisher,
    )
    get_booking_use_case = providers.Singleton(
        GetBookingUseCase, booking_query_repo=booking_query_repo
    )
    list_bookings_use_case = providers.Singleton(
        ListBookingsUseCase,
        booking_query_repo=booking_query_repo,
        upcoming_limit=config_service.provided.UPCOMING_BOOKINGS_LIMIT,
        max_page_size=config_service.provided.HISTORY_PAGE_SIZE_MAX,
        time_zone=config_service.provided.BOOKING_TIME_ZONE,
    )

    # Facade
    booking_orchestrator = providers.Singleton(
        BookingOrchestrator,
        create_booking_use_case=create_booking_use_case,
        cancel_booking_use_case=cancel_booking_use_case,
        review_booking_use_case=review_booking_use_case,
        update_booking_use_case=update_booking_use_case,
        advance_booking_status_use_case=advance_booking_status_use_case,
        dispatch_outbox_use_case=dispatch_outbox_use_case,
        get_booking_use_case=get_booking_use_case,
        list_bookings_use_case=list_bookings_use_case,
    )

    # Background
    outbox_dispatcher = providers.Singleton(
        OutboxDispatcher,
        dispatch_outbox_use_case=dispatch_outbox_use_case,
        interval_seconds=config_service.provided.OUTBOX_DISPATCH_INTERVAL_SECONDS,
        batch_size=config_service.provided.OUTBOX_DISPATCH_BATCH_SIZE,
    )


container = Container()


def setup() -> None:
    container.config_service()


def cleanup() -> None:
    container.reset_singletons()
