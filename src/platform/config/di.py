"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings
from src.platform.database.orm_db_setting import Database
from src.platform.event.in_memory_broadcaster import InMemoryEventBroadcasterImpl
from src.service.booking.app.booking_policy import BookingPolicy
from src.service.booking.app.command.expire_pending_reservations_use_case import (
    ExpirePendingReservationsUseCase,
)
from src.service.booking.app.service.reservation_transition_handler import (
    ReservationTransitionHandler,
)
from src.service.booking.app.service.seat_state_loader import SeatStateLoader
from src.service.booking.driven_adapter.broadcaster.seat_event_broadcaster_impl import (
    SeatEventBroadcasterImpl,
)
from src.service.booking.driven_adapter.repo.reservation_command_repo_impl import (
    ReservationCommandRepoImpl,
)
from src.service.booking.driven_adapter.repo.reservation_query_repo_impl import (
    ReservationQueryRepoImpl,
)
from src.service.booking.driven_adapter.repo.trip_repo_impl import (
    TripCommandRepoImpl,
    TripQueryRepoImpl,
)
from src.service.booking.driven_adapter.state.seat_state_handler_impl import SeatStateHandlerImpl


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)
    booking_policy = providers.Singleton(BookingPolicy.from_settings, config_service)

    # Database (uses AsyncEngineManager with settings from config_service)
    database = providers.Singleton(Database)

    # Repositories (stateless - use session_factory per call)
    trip_query_repo = providers.Singleton(
        TripQueryRepoImpl, session_factory=database.provided.session
    )
    trip_command_repo = providers.Singleton(
        TripCommandRepoImpl, session_factory=database.provided.session
    )
    reservation_query_repo = providers.Singleton(
        ReservationQueryRepoImpl, session_factory=database.provided.session
    )
    reservation_command_repo = providers.Singleton(
        ReservationCommandRepoImpl, session_factory=database.provided.session
    )

    # Availability Index (process-wide state, must stay Singleton)
    seat_state_handler = providers.Singleton(SeatStateHandlerImpl)
    seat_state_loader = providers.Singleton(
        SeatStateLoader,
        seat_state_handler=seat_state_handler,
        trip_query_repo=trip_query_repo,
        reservation_query_repo=reservation_query_repo,
    )

    # In-memory pub/sub for SSE
    event_broadcaster = providers.Singleton(
        InMemoryEventBroadcasterImpl,
        max_buffer_size=config_service.provided.SSE_SUBSCRIBER_BUFFER_SIZE,
    )
    seat_event_broadcaster = providers.Singleton(
        SeatEventBroadcasterImpl, broadcaster=event_broadcaster
    )

    reservation_transition_handler = providers.Singleton(
        ReservationTransitionHandler,
        reservation_command_repo=reservation_command_repo,
        reservation_query_repo=reservation_query_repo,
        trip_query_repo=trip_query_repo,
        seat_state_handler=seat_state_handler,
        seat_state_loader=seat_state_loader,
        seat_event_broadcaster=seat_event_broadcaster,
        policy=booking_policy,
    )

    # Background sweep
    expire_pending_reservations_use_case = providers.Factory(
        ExpirePendingReservationsUseCase,
        reservation_query_repo=reservation_query_repo,
        transition_handler=reservation_transition_handler,
        batch_size=config_service.provided.EXPIRY_SWEEP_BATCH_SIZE,
    )


container = Container()
