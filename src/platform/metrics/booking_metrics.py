from prometheus_client import Counter, Gauge, Histogram


class BookingMetrics:
    """
    Seat Booking Core Metrics Collector

    Tracks reservation throughput, seat conflicts, lifecycle transitions
    and payment outcomes per trip.
    """

    def __init__(self):
        # ========== Reservation Metrics ==========
        self.reservation_requests = Counter(
            'seat_reservation_requests_total',
            'Total seat reservation requests',
            ['channel', 'result'],  # result: created/conflict/invalid
        )

        self.reservation_duration = Histogram(
            'seat_reservation_duration_seconds',
            'create_reservation processing time',
            ['channel'],
            buckets=[0.005, 0.01, 0.05, 0.1, 0.2, 0.5, 1.0, 2.0, 5.0],
        )

        self.reservation_transitions = Counter(
            'reservation_transitions_total',
            'Reservation lifecycle transitions',
            ['target_status'],  # confirmed/cancelled/expired
        )

        self.held_seats = Gauge(
            'held_seats_gauge',
            'Seats currently held by PENDING reservations',
            ['trip_id'],
        )

        # ========== Payment Metrics ==========
        self.payments = Counter(
            'payments_reported_total',
            'Payment results reported to reconciliation',
            ['status', 'method'],
        )

        # ========== Expiry Sweep Metrics ==========
        self.expiry_sweep_duration = Histogram(
            'expiry_sweep_duration_seconds',
            'Expiry sweep duration',
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0],
        )

    # ========== Helper Methods ==========

    def record_reservation_request(self, *, channel: str, result: str, duration: float) -> None:
        self.reservation_requests.labels(channel=channel, result=result).inc()
        self.reservation_duration.labels(channel=channel).observe(duration)

    def record_transition(self, *, target_status: str) -> None:
        self.reservation_transitions.labels(target_status=target_status).inc()

    def update_held_seats(self, *, trip_id: str, count: int) -> None:
        self.held_seats.labels(trip_id=trip_id).set(count)

    def record_payment(self, *, status: str, method: str) -> None:
        self.payments.labels(status=status, method=method).inc()


# Global metrics instance
metrics = BookingMetrics()
