"""Timer service - business logic for time tracking.

A user has at most one open time entry (end_time is None). The invariant
is held by the `active_timers` collection: one claim document per running
timer, keyed by user ID. Inserting the claim is the atomic "nothing is
running, start now" step. A stop closes the entry first and deletes the
claim afterwards, so the claim is held for as long as its entry is open and
concurrent requests from the web UI, slash commands and buttons cannot
produce two open entries or stop the same entry twice.

A claim whose entry is closed, or was never written, is stale and is
dropped by the next start or stop that runs into it.
"""
from datetime import datetime, timedelta
from typing import Optional

import structlog
from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.errors import ConflictError, NoActiveEntryError, NotFoundError, StoreError
from app.models.command import SummaryPeriod
from app.models.project import Project, Ticket
from app.models.time_entry import RunningEntry, TimeEntry, TimeSummary
from app.services.project_service import ProjectService
from app.utils.formatting import round_minutes
from app.utils.periods import period_bounds, utcnow

logger = structlog.get_logger(__name__)

UNKNOWN_PROJECT = "Unknown project"

# A start writes its claim before its entry.
ORPHAN_CLAIM_GRACE = timedelta(minutes=1)


class TimerService:
    """Service for handling time tracking operations."""

    def __init__(self, db, tz_name: str = "UTC"):
        """
        Initialize service.

        Args:
            db: Database or store credential giving access to time_entries,
                active_timers, projects and tickets
            tz_name: Time zone used for summary period boundaries
        """
        self.db = db
        self.tz_name = tz_name
        self.time_entries = db["time_entries"]
        self.active_timers = db["active_timers"]
        self.project_service = ProjectService(db)

    def _doc_to_entry(self, doc: dict) -> TimeEntry:
        """
        Convert database document to TimeEntry model.
        """
        ticket_id = doc.get("ticket_id")
        return TimeEntry(
            _id=str(doc["_id"]),
            user_id=doc["user_id"],
            project_id=str(doc["project_id"]),
            ticket_id=str(ticket_id) if ticket_id else None,
            description=doc.get("description", ""),
            start_time=doc["start_time"],
            end_time=doc.get("end_time"),
            duration_minutes=doc.get("duration_minutes"),
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    async def start_timer(
        self,
        user_id: str,
        project: Project,
        ticket: Optional[Ticket] = None,
        description: str = "",
        start_time: Optional[datetime] = None,
    ) -> TimeEntry:
        """
        Start a new timer.

        Args:
            user_id: User ID
            project: Resolved project
            ticket: Optional resolved ticket of that project
            description: Optional description
            start_time: Optional start time (defaults to now)

        Returns:
            Created time entry

        Raises:
            ConflictError: If a timer is already running for the user
            StoreError: If the store fails
        """
        now = utcnow()
        if start_time is None:
            start_time = now

        entry_id = ObjectId()
        claim_doc = {
            "_id": user_id,
            "entry_id": entry_id,
            "project_id": project.id,
            "start_time": start_time,
            "created_at": now,
        }

        try:
            claimed = await self._insert_claim(claim_doc)
        except PyMongoError as e:
            logger.exception("timer.claim_failed", user_id=user_id)
            raise StoreError("Could not start timer") from e

        if not claimed:
            raise ConflictError("Timer already running")

        entry_doc = {
            "_id": entry_id,
            "user_id": user_id,
            "project_id": project.id,
            "ticket_id": ticket.id if ticket else None,
            "description": description,
            "start_time": start_time,
            "end_time": None,
            "duration_minutes": None,
            "created_at": now,
            "updated_at": now,
        }

        try:
            await self.time_entries.insert_one(entry_doc)
        except PyMongoError as e:
            logger.exception("timer.insert_failed", user_id=user_id)
            await self._release_claim(user_id, entry_id)
            raise StoreError("Could not start timer") from e

        logger.info(
            "timer.started",
            user_id=user_id,
            project_id=project.id,
            ticket_id=ticket.id if ticket else None,
        )
        return self._doc_to_entry(entry_doc)

    async def _insert_claim(self, claim_doc: dict) -> bool:
        """
        Insert a claim, replacing a stale one if it is in the way.

        Returns:
            False if another timer holds the claim
        """
        try:
            await self.active_timers.insert_one(claim_doc)
            return True
        except DuplicateKeyError:
            pass

        existing = await self.active_timers.find_one({"_id": claim_doc["_id"]})
        if existing is not None and not await self._drop_stale_claim(existing):
            return False

        try:
            await self.active_timers.insert_one(claim_doc)
        except DuplicateKeyError:
            return False
        return True

    async def _drop_stale_claim(self, claim: dict) -> bool:
        """
        Delete a claim whose entry is closed or missing.

        A claim without an entry is left alone while younger than
        ORPHAN_CLAIM_GRACE, since its start may still be writing the entry.

        Returns:
            True if the claim was deleted
        """
        entry = await self.time_entries.find_one(
            {"_id": claim["entry_id"]},
            projection={"end_time": 1},
        )
        if entry is not None and entry.get("end_time") is None:
            return False
        if entry is None:
            claimed_at = claim.get("created_at") or claim["start_time"]
            if utcnow() - claimed_at < ORPHAN_CLAIM_GRACE:
                return False

        result = await self.active_timers.delete_one(
            {"_id": claim["_id"], "entry_id": claim["entry_id"]}
        )
        if result.deleted_count:
            logger.warning(
                "timer.stale_claim_dropped",
                user_id=claim["_id"],
                entry_id=str(claim["entry_id"]),
            )
        return result.deleted_count == 1

    async def _release_claim(self, user_id: str, entry_id: ObjectId) -> None:
        try:
            await self.active_timers.delete_one({"_id": user_id, "entry_id": entry_id})
        except PyMongoError:
            logger.exception("timer.claim_release_failed", user_id=user_id)

    async def start_by_name(
        self,
        user_id: str,
        project_name: str,
        ticket_number: Optional[int] = None,
        description: str = "",
    ) -> RunningEntry:
        """
        Start a timer for a project given by name, optionally for a ticket.

        Args:
            user_id: User ID
            project_name: Project name (case-insensitive exact match)
            ticket_number: Optional ticket number within the project
            description: Optional description

        Returns:
            The started entry with project and ticket details

        Raises:
            NotFoundError: If the project or ticket does not exist
            ConflictError: If a timer is already running
        """
        project = await self.project_service.find_project_by_name(project_name)
        ticket = None
        if ticket_number is not None:
            ticket = await self.project_service.find_ticket_by_number(project, ticket_number)

        entry = await self.start_timer(user_id, project, ticket, description)
        return self._to_running(entry, project.name, ticket)

    async def start_by_project_id(
        self,
        user_id: str,
        project_id: str,
        ticket_id: Optional[str] = None,
        description: str = "",
    ) -> RunningEntry:
        """
        Start a timer for a project given by ID.

        Raises:
            NotFoundError: If the project or ticket does not exist
            ConflictError: If a timer is already running
        """
        project = await self.project_service.get_project(project_id)
        ticket = None
        if ticket_id:
            ticket = await self.project_service.get_ticket(ticket_id, project)

        entry = await self.start_timer(user_id, project, ticket, description)
        return self._to_running(entry, project.name, ticket)

    async def stop_timer(
        self,
        user_id: str,
        end_time: Optional[datetime] = None,
    ) -> TimeEntry:
        """
        Stop the currently running timer.

        Args:
            user_id: User ID
            end_time: Optional end time (defaults to now)

        Returns:
            Updated time entry with end_time and duration

        Raises:
            NoActiveEntryError: If no timer is running
            StoreError: If the store fails
        """
        try:
            claim = await self.active_timers.find_one({"_id": user_id})
        except PyMongoError as e:
            logger.exception("timer.claim_lookup_failed", user_id=user_id)
            raise StoreError("Could not stop timer") from e

        if not claim:
            raise NoActiveEntryError()

        if end_time is None:
            end_time = utcnow()

        duration = round_minutes(claim["start_time"], end_time)

        update_doc = {
            "end_time": end_time,
            "duration_minutes": duration,
            "updated_at": utcnow(),
        }

        try:
            updated_doc = await self.time_entries.find_one_and_update(
                {"_id": claim["entry_id"], "end_time": None},
                {"$set": update_doc},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.exception("timer.stop_failed", user_id=user_id)
            raise StoreError("Could not stop timer") from e

        if updated_doc is None:
            # Another stop closed it first, or the entry was never written.
            try:
                await self._drop_stale_claim(claim)
            except PyMongoError:
                logger.exception("timer.claim_cleanup_failed", user_id=user_id)
            raise NoActiveEntryError()

        await self._release_claim(user_id, claim["entry_id"])

        logger.info("timer.stopped", user_id=user_id, duration_minutes=duration)
        return self._doc_to_entry(updated_doc)

    async def get_current_timer(self, user_id: str) -> Optional[TimeEntry]:
        """
        Get the currently running timer, if any.

        Args:
            user_id: User ID

        Returns:
            Current running time entry, or None
        """
        try:
            running_timer = await self.time_entries.find_one({
                "user_id": user_id,
                "end_time": None,
            })
        except PyMongoError as e:
            logger.exception("timer.current_failed", user_id=user_id)
            raise StoreError("Could not load timer") from e

        if not running_timer:
            return None

        return self._doc_to_entry(running_timer)

    async def get_running_entry(self, user_id: str) -> Optional[RunningEntry]:
        """
        Get the running timer with project and ticket details.

        Returns:
            Running entry, or None if the user is idle
        """
        entry = await self.get_current_timer(user_id)
        if entry is None:
            return None

        project_name = await self.project_service.get_project_name(entry.project_id)
        ticket = None
        if entry.ticket_id:
            try:
                ticket = await self.project_service.get_ticket(entry.ticket_id)
            except NotFoundError:
                ticket = None

        return self._to_running(entry, project_name or UNKNOWN_PROJECT, ticket)

    def _to_running(
        self,
        entry: TimeEntry,
        project_name: str,
        ticket: Optional[Ticket],
    ) -> RunningEntry:
        return RunningEntry(
            id=entry.id,
            user_id=entry.user_id,
            project_id=entry.project_id,
            project_name=project_name,
            ticket_id=ticket.id if ticket else entry.ticket_id,
            ticket_number=ticket.ticket_number if ticket else None,
            ticket_title=ticket.title if ticket else None,
            description=entry.description,
            start_time=entry.start_time,
        )

    async def summary(
        self,
        user_id: str,
        period: SummaryPeriod = SummaryPeriod.TODAY,
        now: Optional[datetime] = None,
    ) -> TimeSummary:
        """
        Sum tracked minutes of closed entries started within a period.

        Args:
            user_id: User ID
            period: Summary period
            now: Reference time (defaults to now)

        Returns:
            Summary with total minutes and the period boundaries
        """
        period_start, period_end = period_bounds(period, self.tz_name, now)
        query = {
            "user_id": user_id,
            "end_time": {"$ne": None},
            "start_time": {"$gte": period_start, "$lte": period_end},
        }

        total = 0
        try:
            async for doc in self.time_entries.find(query, {"duration_minutes": 1}):
                total += doc.get("duration_minutes") or 0
        except PyMongoError as e:
            logger.exception("timer.summary_failed", user_id=user_id)
            raise StoreError("Could not load summary") from e

        return TimeSummary(
            period=period,
            period_start=period_start,
            period_end=period_end,
            total_minutes=total,
        )

    async def list_entries(
        self,
        user_id: str,
        project_id: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[TimeEntry]:
        """
        List time entries for a user with optional filtering.

        Args:
            user_id: User ID
            project_id: Optional project filter
            start_date: Optional start date filter
            end_date: Optional end date filter

        Returns:
            List of time entries, most recent first
        """
        # Build query
        query = {
            "user_id": user_id,
        }

        if project_id:
            query["project_id"] = project_id

        if start_date or end_date:
            query["start_time"] = {}
            if start_date:
                query["start_time"]["$gte"] = start_date
            if end_date:
                query["start_time"]["$lte"] = end_date

        try:
            cursor = self.time_entries.find(query, sort=[("start_time", DESCENDING)])
            entry_docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.exception("timer.list_failed", user_id=user_id)
            raise StoreError("Could not list entries") from e

        return [self._doc_to_entry(doc) for doc in entry_docs]
