# trip_planner/api/services/planning_service.py
"""Planning pipeline: start location -> itinerary -> directions.

One run walks Idle -> Resolving -> Generating -> Validating -> Routing ->
Settled and drops back to Idle.  Only one run may be active at a time.
Itinerary results and route results fail independently: a routing failure
keeps the itinerary, a generation failure clears everything.

Every run gets an id from a monotonic counter.  When the user picks a new
location or changes constraints while a run is active the counter moves on,
and the active run's results are dropped at the next point where they would
be applied.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from trip_planner.api.errors import (
    GenerationError,
    LocationError,
    LocationErrorKind,
    PipelineBusyError,
    RoutingError,
    ValidationError,
    ValidationErrorKind,
)
from trip_planner.api.geocoding import LocationResolver
from trip_planner.api.llm import ItineraryClient
from trip_planner.api.models import (
    GenerationResult,
    Location,
    OutcomeKind,
    PipelinePhase,
    PipelineRun,
    PlanningState,
    RunOutcome,
    TravelConstraints,
)
from trip_planner.api.prompts import build_prompt
from trip_planner.api.services.map_service import MapSession
from trip_planner.api.services.route_service import RouteComputer

logger = logging.getLogger(__name__)

GENERATION_FAILED_MESSAGE = GenerationError.default_message
ROUTING_FAILED_MESSAGE = RoutingError.default_message
NO_START_LOCATION_MESSAGE = ValidationError.default_message
COORDINATES_OUT_OF_RANGE_MESSAGE = "Coordinates out of range"

Listener = Callable[[Dict[str, Any]], None]


class PlanningPipeline:
    """Owns the planning state and sequences resolver, generator and router."""

    def __init__(
        self,
        session: MapSession,
        itinerary_client: Optional[ItineraryClient] = None,
        resolver: Optional[LocationResolver] = None,
        route_computer: Optional[RouteComputer] = None,
    ):
        self.session = session
        self.itinerary_client = itinerary_client or ItineraryClient()
        self.resolver = resolver or LocationResolver(session.maps_client)
        self.route_computer = route_computer or RouteComputer(session.maps_client)

        self.state = PlanningState()
        self._lock = threading.Lock()
        self._run_counter = 0
        self._listeners: List[Listener] = []

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def add_listener(self, listener: Listener) -> None:
        """Call ``listener`` with a state snapshot after every transition."""
        self._listeners.append(listener)

    def snapshot(self) -> Dict[str, Any]:
        data = self.state.to_dict()
        location = self.session.current_location
        data["current_location"] = location.to_dict() if location else None

        points = [location.coordinates] if location else []
        if self.state.itinerary:
            points.extend(stop.coordinates for stop in self.state.itinerary.stops)
        data["bounds"] = MapSession.calculate_bounds(points)
        return data

    def _notify(self) -> None:
        if not self._listeners:
            return
        data = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(data)
            except Exception as e:
                logger.exception(f"Planning listener failed: {e}")

    # ------------------------------------------------------------------
    # Location and constraints
    # ------------------------------------------------------------------

    async def select_coordinates(self, lat: float, lng: float) -> Location:
        """Map click: reverse geocode and make it the start location."""
        selection_id = self.session.begin_selection()
        location = await self.resolver.resolve_from_coordinates(lat, lng)
        self._apply_location(location, selection_id)
        return location

    def select_place(self, place: Dict[str, Any]) -> Location:
        """Autocomplete selection."""
        try:
            location = self._checked(self.resolver.resolve_from_place_selection(place))
        except LocationError as e:
            self._report_location_error(e)
            raise
        self._apply_location(location, self.session.begin_selection())
        return location

    async def search_place(self, query: str) -> Location:
        """Free-text search for a start location."""
        selection_id = self.session.begin_selection()
        try:
            location = self._checked(await self.resolver.resolve_from_query(query))
        except LocationError as e:
            self.session.cancel_selection(selection_id)
            self._report_location_error(e)
            raise
        self._apply_location(location, selection_id)
        return location

    async def report_device_position(self, position: Optional[Dict[str, Any]]) -> Location:
        """Browser geolocation result, either coordinates or an error code."""
        if not self.state.is_running:
            self.state.error = None
        try:
            lat, lng = self.resolver.parse_device_position(position)
            if not self.session.validate_coordinates(lat, lng):
                raise LocationError(LocationErrorKind.POSITION_UNAVAILABLE)
        except LocationError as e:
            self._report_location_error(e)
            raise
        selection_id = self.session.begin_selection()
        location = await self.resolver.resolve_from_coordinates(lat, lng)
        self._apply_location(location, selection_id)
        return location

    def update_constraints(self, data: Dict[str, Any]) -> TravelConstraints:
        """Replace the constraints slot; missing keys keep their current value."""
        constraints = TravelConstraints.from_dict(data, base=self.session.constraints)
        with self._lock:
            self.session.constraints = constraints
            self._supersede_active_run("constraints changed")
        logger.info(f"Travel constraints updated: {constraints.to_dict()}")
        return constraints

    def _apply_location(self, location: Location, selection_id: int) -> None:
        with self._lock:
            if not self.session.update_location(location, selection_id):
                return
            self._supersede_active_run("start location changed")
        self._notify()

    def _checked(self, location: Location) -> Location:
        if not self.session.validate_coordinates(location.latitude, location.longitude):
            raise LocationError(LocationErrorKind.NO_GEOMETRY, COORDINATES_OUT_OF_RANGE_MESSAGE)
        return location

    def _report_location_error(self, error: LocationError) -> None:
        logger.warning(f"Location not resolved ({error.kind.value}): {error.message}")
        self.state.error = error.message
        self._notify()

    def _supersede_active_run(self, reason: str) -> None:
        # Caller holds self._lock.
        if self.state.is_running:
            self._run_counter += 1
            logger.info(f"[run={self.state.run_id}] Superseded: {reason}")

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    async def run(self, constraints: Optional[TravelConstraints] = None) -> RunOutcome:
        """Generate an itinerary and directions for the current location.

        Raises:
            PipelineBusyError: another run is active; state is left alone
            ValidationError: no start location has been selected
        """
        run = self._begin_run(constraints)
        try:
            return await self._execute(run)
        except Exception as e:
            logger.exception(f"[run={run.run_id}] Unexpected pipeline error: {e}")
            return self._settle_generation_failure(run, str(e))
        finally:
            self._release(run)

    def _begin_run(self, constraints: Optional[TravelConstraints]) -> PipelineRun:
        with self._lock:
            if self.state.is_running:
                logger.info(f"Run rejected: run {self.state.run_id} is already running")
                raise PipelineBusyError()

            origin = self.session.current_location
            if origin is None:
                self.state.error = NO_START_LOCATION_MESSAGE
                missing = True
            else:
                missing = False
                if constraints is not None:
                    self.session.constraints = constraints
                self._run_counter += 1
                run = PipelineRun(self._run_counter, origin, self.session.constraints)

                self.state.phase = PipelinePhase.RESOLVING
                self.state.run_id = run.run_id
                self.state.origin = run.origin
                self.state.constraints = run.constraints
                self.state.clear_results()
                self.state.error = None
                self.state.outcome = None
                self.session.clear_route()

        if missing:
            self._notify()
            raise ValidationError(ValidationErrorKind.NO_START_LOCATION, NO_START_LOCATION_MESSAGE)

        logger.info(
            f"[run={run.run_id}] Run started | origin='{run.origin.address}', "
            f"constraints={run.constraints.to_dict()}"
        )
        self._notify()
        return run

    def _is_current(self, run: PipelineRun) -> bool:
        return run.run_id == self._run_counter

    def _advance(self, run: PipelineRun, phase: PipelinePhase) -> bool:
        if not self._is_current(run):
            return False
        self.state.phase = phase
        logger.info(f"[run={run.run_id}] -> {phase.value}")
        self._notify()
        return True

    async def _execute(self, run: PipelineRun) -> RunOutcome:
        prompt = build_prompt(run.origin, run.constraints)

        if not self._advance(run, PipelinePhase.GENERATING):
            return self._settle_superseded(run)
        try:
            response = await self.itinerary_client.invoke(prompt)
            if not self._advance(run, PipelinePhase.VALIDATING):
                return self._settle_superseded(run)
            result = self.itinerary_client.parse_response(response)
        except GenerationError as e:
            logger.error(f"[run={run.run_id}] Itinerary generation failed: {e}")
            return self._settle_generation_failure(run, str(e))

        if not self._is_current(run):
            return self._settle_superseded(run)
        self._apply_itinerary(result)

        if not result.itinerary.stops:
            return self._settle(run, OutcomeKind.SUCCESS)

        if not self._advance(run, PipelinePhase.ROUTING):
            return self._settle_superseded(run)
        try:
            route = await self.route_computer.compute_route(
                run.origin, result.itinerary.stops, run.constraints.mode
            )
        except RoutingError as e:
            if not self._is_current(run):
                return self._settle_superseded(run)
            logger.error(f"[run={run.run_id}] Directions failed: {e}")
            return self._settle(run, OutcomeKind.PARTIAL_SUCCESS, error=e.message)

        if not self._is_current(run):
            return self._settle_superseded(run)
        self.state.route = route
        self.session.render_route(route)
        return self._settle(run, OutcomeKind.SUCCESS)

    def _apply_itinerary(self, result: GenerationResult) -> None:
        self.state.itinerary = result.itinerary
        self.state.sources = list(result.sources)

    # ------------------------------------------------------------------
    # Settling
    # ------------------------------------------------------------------

    def _settle(self, run: PipelineRun, kind: OutcomeKind, error: Optional[str] = None) -> RunOutcome:
        self.state.error = error
        self.state.outcome = kind
        self.state.phase = PipelinePhase.SETTLED
        logger.info(
            f"[run={run.run_id}] Settled | outcome={kind.value}, "
            f"stops={len(self.state.itinerary.stops) if self.state.itinerary else 0}, "
            f"sources={len(self.state.sources)}, route={'yes' if self.state.route else 'no'}"
        )
        self._notify()
        return RunOutcome(
            kind=kind,
            itinerary=self.state.itinerary,
            sources=tuple(self.state.sources),
            route=self.state.route,
            error=error,
        )

    def _settle_generation_failure(self, run: PipelineRun, detail: str) -> RunOutcome:
        if not self._is_current(run):
            return self._settle_superseded(run)
        self.state.clear_results()
        self.session.clear_route()
        return self._settle(run, OutcomeKind.GENERATION_FAILURE, error=GENERATION_FAILED_MESSAGE)

    def _settle_superseded(self, run: PipelineRun) -> RunOutcome:
        # Results belong to an origin or constraints the user has moved away from.
        logger.info(f"[run={run.run_id}] Discarding results of stale run")
        self.state.clear_results()
        self.session.clear_route()
        self.state.error = None
        self.state.outcome = OutcomeKind.SUPERSEDED
        self.state.phase = PipelinePhase.SETTLED
        self._notify()
        return RunOutcome(kind=OutcomeKind.SUPERSEDED)

    def _release(self, run: PipelineRun) -> None:
        with self._lock:
            if self.state.run_id == run.run_id:
                self.state.phase = PipelinePhase.IDLE
        self._notify()


__all__ = [
    "PlanningPipeline",
    "GENERATION_FAILED_MESSAGE",
    "ROUTING_FAILED_MESSAGE",
    "NO_START_LOCATION_MESSAGE",
]
