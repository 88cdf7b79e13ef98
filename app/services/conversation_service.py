"""Numbered-menu conversation engine for the AgriHaul WhatsApp bot.

One call to ConversationEngine.handle_incoming_message() is one chat turn:
look up the sender's session, route the text to the step handler for the
session's flow, and return the reply text. Backend failures and corrupted
sessions always end the turn on the main menu.
"""

import threading
from dataclasses import dataclass
from typing import Any, Callable
from weakref import WeakValueDictionary

from app.logging_config import SenderLogger, get_logger
from app.models.session import (
    FindLoadsDraft,
    LoadListing,
    PostLoadDraft,
    RateDraft,
    Session,
    SessionStateError,
    TrackDraft,
)
from app.schemas.agrihaul import CreateJobRequest, Equipment, RatingRequest
from app.services import replies
from app.services.agrihaul_client import AgriHaulClient, filter_jobs_by_pickup
from app.services.parsers import (
    clean_crop,
    clean_location,
    format_eta,
    lbs_to_tons,
    parse_dollars,
    parse_leading_int,
    parse_weight,
)
from app.services.result import ErrorKind, Result
from app.services.session_store import SessionStore
from app.services.state_machine import (
    MAIN_MENU_OPTIONS,
    Flow,
    InvalidTransitionError,
    coerce_flow,
    transition,
)

logger = get_logger("conversation")

MENU_KEYWORDS = {"menu", "main", "restart"}
GREETING_KEYWORDS = {"hello", "hi", "start"}
SKIP_KEYWORD = "skip"
MIN_CARRIER_ID_LENGTH = 8
MIN_SCORE = 1
MAX_SCORE = 5

START_PROMPTS = {
    Flow.POST_LOAD_CROP: replies.MSG_POST_LOAD_START,
    Flow.FIND_LOADS_LOCATION: replies.MSG_FIND_LOADS_START,
    Flow.TRACK_JOB_ENTER: replies.MSG_TRACK_START,
    Flow.RATE_ENTER_JOB: replies.MSG_RATE_START,
}

StepHandler = Callable[[Session, str, SenderLogger], str]


@dataclass
class TurnOutcome:
    reply: str
    flow: Flow


def _or_na(value: Any) -> str:
    return "N/A" if value is None else str(value)


class ConversationEngine:
    def __init__(
        self,
        store: SessionStore,
        client: AgriHaulClient,
        find_loads_fetch_limit: int = 25,
        find_loads_max_results: int = 3,
    ):
        self.store = store
        self.client = client
        self.find_loads_fetch_limit = find_loads_fetch_limit
        self.find_loads_max_results = find_loads_max_results

        # Turns for the same sender run one at a time.
        self._locks: WeakValueDictionary = WeakValueDictionary()
        self._locks_guard = threading.Lock()

        self._handlers: dict[Flow, StepHandler] = {
            Flow.POST_LOAD_CROP: self._post_load_crop,
            Flow.POST_LOAD_WEIGHT: self._post_load_weight,
            Flow.POST_LOAD_PICKUP: self._post_load_pickup,
            Flow.POST_LOAD_DROP: self._post_load_drop,
            Flow.POST_LOAD_PAYMENT: self._post_load_payment,
            Flow.POST_LOAD_EQUIPMENT: self._post_load_equipment,
            Flow.FIND_LOADS_LOCATION: self._find_loads_location,
            Flow.FIND_LOADS_SELECT: self._find_loads_select,
            Flow.FIND_LOADS_LINK_CARRIER: self._find_loads_link_carrier,
            Flow.TRACK_JOB_ENTER: self._track_job,
            Flow.RATE_ENTER_JOB: self._rate_enter_job,
            Flow.RATE_ENTER_SCORE: self._rate_enter_score,
            Flow.RATE_ENTER_COMMENT: self._rate_enter_comment,
        }

    def _lock_for(self, sender_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(sender_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[sender_id] = lock
            return lock

    def get_or_create_session(self, sender_id: str) -> Session:
        """Find the live session for a sender or start a new one on the main menu."""
        session = self.store.get(sender_id)
        if session is None:
            session = Session(sender_id=sender_id, last_active_at=self.store.clock())
            logger.info("Session created", extra={"context": {"sender_id": sender_id}})
        return session

    def process_turn(self, sender_id: str, raw_text: str) -> TurnOutcome:
        """Process one inbound message; returns the reply and the flow it left the sender in."""
        lock = self._lock_for(sender_id)
        with lock:
            session = self.get_or_create_session(sender_id)
            session.last_active_at = self.store.clock()
            log = SenderLogger(logger, sender_id, flow=session.flow)
            try:
                reply = self._route(session, raw_text or "", log)
            except Exception:
                session.reset_to_main()
                raise
            finally:
                self.store.put(session)
            return TurnOutcome(reply=reply, flow=session.flow)

    def handle_incoming_message(self, sender_id: str, raw_text: str) -> str:
        """Process one inbound message and return the reply text."""
        return self.process_turn(sender_id, raw_text).reply

    def _route(self, session: Session, raw_text: str, log: SenderLogger) -> str:
        text = raw_text.strip()
        lowered = text.lower()

        if lowered in MENU_KEYWORDS:
            session.reset_to_main()
            return replies.main_menu()

        flow = coerce_flow(session.flow)
        if flow is None:
            log.warning(
                "Unknown session flow, resetting to main menu",
                context={"flow": str(session.flow), "error_kind": ErrorKind.INTERNAL.value, "error_code": "unknown_flow"},
            )
            session.reset_to_main()
            return replies.main_menu()
        session.flow = flow

        if flow == Flow.MAIN or lowered in GREETING_KEYWORDS:
            if flow != Flow.MAIN:
                session.reset_to_main()
            selection = parse_leading_int(lowered)
            if selection is not None:
                return self._select_main_option(session, selection)
            return replies.main_menu()

        handler = self._handlers.get(flow)
        if handler is None:
            session.reset_to_main()
            return replies.main_menu()

        try:
            return handler(session, text, log)
        except (SessionStateError, InvalidTransitionError) as e:
            log.error(
                "Session state corrupted, resetting to main menu",
                context={"flow": flow.value, "error": str(e), "error_kind": ErrorKind.INTERNAL.value},
            )
            session.reset_to_main()
            return replies.main_menu()

    def _select_main_option(self, session: Session, number: int) -> str:
        target = MAIN_MENU_OPTIONS.get(number)
        if target is None:
            return replies.with_menu(replies.MSG_INVALID_MENU_SELECTION)
        session.start(transition(Flow.MAIN, target))
        return START_PROMPTS[target]

    # ----- helpers -----

    @staticmethod
    def _advance(session: Session, to_flow: Flow) -> None:
        session.flow = transition(session.flow, to_flow)

    @staticmethod
    def _reject(session: Session, log: SenderLogger, code: str, reply: str) -> str:
        log.debug(
            "Input rejected",
            context={"flow": session.flow.value, "error_kind": ErrorKind.VALIDATION.value, "error_code": code},
        )
        return reply

    @staticmethod
    def _upstream_failed(session: Session, log: SenderLogger, result: Result, apology: str) -> str:
        log.error("Backend call failed", context={"flow": session.flow.value, **result.log_context()})
        session.reset_to_main()
        return replies.with_menu(apology)

    @staticmethod
    def _finish(session: Session, text: str) -> str:
        session.reset_to_main()
        return replies.with_menu(text)

    # ----- post a load -----

    def _post_load_crop(self, session: Session, text: str, log: SenderLogger) -> str:
        draft: PostLoadDraft = session.draft_as(PostLoadDraft)
        crop = clean_crop(text)
        if not crop:
            return self._reject(session, log, "invalid_crop", replies.MSG_INVALID_CROP)
        draft.crop = crop
        self._advance(session, Flow.POST_LOAD_WEIGHT)
        return replies.crop_accepted(crop)

    def _post_load_weight(self, session: Session, text: str, log: SenderLogger) -> str:
        draft: PostLoadDraft = session.draft_as(PostLoadDraft)
        lbs = parse_weight(text)
        if lbs is None:
            return self._reject(session, log, "invalid_weight", replies.MSG_INVALID_WEIGHT)
        draft.weight_lbs = lbs
        draft.weight_display = f"{lbs} lbs"
        self._advance(session, Flow.POST_LOAD_PICKUP)
        return replies.weight_accepted(draft.weight_display)

    def _post_load_pickup(self, session: Session, text: str, log: SenderLogger) -> str:
        draft: PostLoadDraft = session.draft_as(PostLoadDraft)
        location = clean_location(text)
        if not location:
            return self._reject(session, log, "invalid_pickup", replies.MSG_INVALID_PICKUP)
        draft.pickup = location
        self._advance(session, Flow.POST_LOAD_DROP)
        return replies.pickup_accepted(location)

    def _post_load_drop(self, session: Session, text: str, log: SenderLogger) -> str:
        draft: PostLoadDraft = session.draft_as(PostLoadDraft)
        location = clean_location(text)
        if not location:
            return self._reject(session, log, "invalid_drop", replies.MSG_INVALID_DROP)
        draft.drop = location
        self._advance(session, Flow.POST_LOAD_PAYMENT)
        return replies.drop_accepted(location)

    def _post_load_payment(self, session: Session, text: str, log: SenderLogger) -> str:
        draft: PostLoadDraft = session.draft_as(PostLoadDraft)
        dollars = parse_dollars(text)
        if dollars is None:
            return self._reject(session, log, "invalid_payment", replies.MSG_INVALID_PAYMENT)
        draft.payment_dollars = dollars
        draft.payment_display = f"${dollars}"
        self._advance(session, Flow.POST_LOAD_EQUIPMENT)
        return replies.payment_accepted(draft.payment_display)

    def _post_load_equipment(self, session: Session, text: str, log: SenderLogger) -> str:
        draft: PostLoadDraft = session.draft_as(PostLoadDraft)
        equipment = Equipment.from_menu_number(parse_leading_int(text))
        if equipment is None:
            return self._reject(session, log, "invalid_equipment", replies.MSG_INVALID_EQUIPMENT)
        if None in (draft.crop, draft.weight_lbs, draft.pickup, draft.drop, draft.payment_dollars):
            raise SessionStateError("post-load draft is incomplete")
        draft.equipment = equipment.value

        payload = CreateJobRequest(
            crop=draft.crop,
            load_size=lbs_to_tons(draft.weight_lbs),
            payout_dollars=draft.payment_dollars,
            pickup_address=draft.pickup,
            dropoff_address=draft.drop,
            equipment_needed=[equipment.slug],
        )
        result = self.client.create_job(payload)
        if not result.ok:
            return self._upstream_failed(session, log, result, replies.MSG_POST_LOAD_FAILED)

        log.info("Load posted", context={"job_id": result.value, "crop": draft.crop})
        return self._finish(session, replies.load_posted(result.value, draft))

    # ----- find loads -----

    def _find_loads_location(self, session: Session, text: str, log: SenderLogger) -> str:
        draft: FindLoadsDraft = session.draft_as(FindLoadsDraft)
        location = clean_location(text)
        if not location:
            return self._reject(session, log, "invalid_location", replies.MSG_INVALID_SEARCH_LOCATION)

        result = self.client.list_open_jobs(limit=self.find_loads_fetch_limit)
        if not result.ok:
            return self._upstream_failed(session, log, result, replies.MSG_FIND_LOADS_FAILED)

        nearby = filter_jobs_by_pickup(result.value, location, self.find_loads_max_results)
        if not nearby:
            return self._finish(session, replies.no_loads_found(location))

        listings = [LoadListing.from_job(job) for job in nearby]
        draft.location = location
        draft.last_shown = listings
        draft.selected_job_id = None
        self._advance(session, Flow.FIND_LOADS_SELECT)
        return replies.loads_list(location, listings)

    def _find_loads_select(self, session: Session, text: str, log: SenderLogger) -> str:
        draft: FindLoadsDraft = session.draft_as(FindLoadsDraft)
        items = draft.last_shown
        index = parse_leading_int(text)
        if index is None or index < 1 or index > len(items):
            return self._reject(session, log, "invalid_selection", replies.invalid_load_selection(len(items)))

        chosen = items[index - 1]
        draft.selected_job_id = chosen.job_id

        if not session.linked_carrier_id:
            self._advance(session, Flow.FIND_LOADS_LINK_CARRIER)
            return replies.MSG_LINK_CARRIER

        return self._accept_job(session, draft, chosen.job_id, log)

    def _find_loads_link_carrier(self, session: Session, text: str, log: SenderLogger) -> str:
        draft: FindLoadsDraft = session.draft_as(FindLoadsDraft)
        carrier_id = text.strip()
        if len(carrier_id) < MIN_CARRIER_ID_LENGTH:
            return self._reject(session, log, "invalid_carrier_id", replies.MSG_INVALID_CARRIER_ID)

        session.linked_carrier_id = carrier_id
        log.info("Carrier linked", context={"carrier_id": carrier_id})

        if not draft.selected_job_id:
            return self._finish(session, replies.MSG_LINK_SUCCESS)
        return self._accept_job(session, draft, draft.selected_job_id, log)

    def _accept_job(self, session: Session, draft: FindLoadsDraft, job_id: str, log: SenderLogger) -> str:
        result = self.client.accept_job(job_id, session.linked_carrier_id)
        if not result.ok:
            return self._upstream_failed(session, log, result, replies.MSG_ACCEPT_FAILED)

        log.info("Job accepted", context={"job_id": job_id, "carrier_id": session.linked_carrier_id})
        return self._finish(session, replies.application_submitted(job_id, draft.listing_for(job_id)))

    # ----- track a shipment -----

    def _track_job(self, session: Session, text: str, log: SenderLogger) -> str:
        draft: TrackDraft = session.draft_as(TrackDraft)
        job_id = text.strip()
        if not job_id:
            return self._reject(session, log, "invalid_job_id", replies.MSG_INVALID_JOB_ID)
        draft.job_id = job_id

        result = self.client.get_job(job_id)
        if not result.ok:
            return self._upstream_failed(session, log, result, replies.MSG_TRACK_FAILED)

        job = result.value
        status = job.get("status")
        reply = replies.shipment_status(
            job_id=job_id,
            status=("unknown" if status is None else str(status)).upper(),
            pickup=_or_na(job.get("pickup_address")),
            drop=_or_na(job.get("dropoff_address")),
            eta=format_eta(job.get("eta")),
        )
        return self._finish(session, reply)

    # ----- rate a job -----

    def _rate_enter_job(self, session: Session, text: str, log: SenderLogger) -> str:
        draft: RateDraft = session.draft_as(RateDraft)
        job_id = text.strip()
        if not job_id:
            return self._reject(session, log, "invalid_job_id", replies.MSG_INVALID_JOB_ID)
        draft.job_id = job_id
        self._advance(session, Flow.RATE_ENTER_SCORE)
        return replies.MSG_RATE_ASK_SCORE

    def _rate_enter_score(self, session: Session, text: str, log: SenderLogger) -> str:
        draft: RateDraft = session.draft_as(RateDraft)
        score = parse_leading_int(text)
        if score is None or score < MIN_SCORE or score > MAX_SCORE:
            return self._reject(session, log, "invalid_score", replies.MSG_INVALID_SCORE)
        draft.score = score
        self._advance(session, Flow.RATE_ENTER_COMMENT)
        return replies.MSG_RATE_ASK_COMMENT

    def _rate_enter_comment(self, session: Session, text: str, log: SenderLogger) -> str:
        draft: RateDraft = session.draft_as(RateDraft)
        if draft.job_id is None or draft.score is None:
            raise SessionStateError("rating draft is incomplete")
        draft.comment = "" if text.lower() == SKIP_KEYWORD else text

        job_result = self.client.get_job(draft.job_id)
        if not job_result.ok:
            return self._upstream_failed(session, log, job_result, replies.MSG_RATE_FAILED)

        job = job_result.value
        ratee_id = job.get("farmer_id") or job.get("farmerId")
        if not ratee_id:
            missing = Result.upstream_failure("ratee_id not found for job", "missing_ratee")
            return self._upstream_failed(session, log, missing, replies.MSG_RATE_FAILED)

        payload = RatingRequest.uniform(draft.job_id, str(ratee_id), draft.score, draft.comment)
        result = self.client.submit_rating(payload)
        if not result.ok:
            return self._upstream_failed(session, log, result, replies.MSG_RATE_FAILED)

        log.info("Rating submitted", context={"job_id": draft.job_id, "score": draft.score})
        return self._finish(session, replies.MSG_RATE_SUBMITTED)
