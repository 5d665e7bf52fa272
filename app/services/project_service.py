"""Project service - read-only lookups of projects and tickets."""
import re
from typing import Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError
import structlog

from app.errors import NotFoundError, StoreError
from app.models.project import Project, Ticket

logger = structlog.get_logger(__name__)


def _id_query(value: str) -> dict:
    """Match an _id stored either as ObjectId or as a plain string."""
    if ObjectId.is_valid(value):
        return {"_id": {"$in": [ObjectId(value), value]}}
    return {"_id": value}


class ProjectService:
    """Service for resolving projects and tickets referenced by commands."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.projects = db["projects"]
        self.tickets = db["tickets"]

    def _doc_to_project(self, doc: dict) -> Project:
        return Project(
            _id=str(doc["_id"]),
            name=doc["name"],
            hourly_rate=doc.get("hourly_rate"),
            created_at=doc.get("created_at"),
        )

    def _doc_to_ticket(self, doc: dict) -> Ticket:
        return Ticket(
            _id=str(doc["_id"]),
            project_id=str(doc["project_id"]),
            ticket_number=doc["ticket_number"],
            title=doc.get("title", ""),
            status=doc.get("status"),
            priority=doc.get("priority"),
        )

    async def find_project_by_name(self, name: str) -> Project:
        """
        Find a project by case-insensitive exact name.

        When several projects share the name the oldest one wins.

        Args:
            name: Project name as typed by the user

        Returns:
            Matching project

        Raises:
            NotFoundError: If no project has this name
        """
        pattern = re.compile(f"^{re.escape(name.strip())}$", re.IGNORECASE)
        try:
            cursor = self.projects.find(
                {"name": pattern}, sort=[("created_at", ASCENDING)], limit=1
            )
            docs = await cursor.to_list(length=1)
        except PyMongoError as e:
            logger.exception("project.lookup_failed", name=name)
            raise StoreError("Project lookup failed") from e

        if not docs:
            raise NotFoundError(f'Project "{name}" not found')

        return self._doc_to_project(docs[0])

    async def get_project(self, project_id: str) -> Project:
        """
        Get a project by ID.

        Raises:
            NotFoundError: If the project does not exist
        """
        try:
            doc = await self.projects.find_one(_id_query(project_id))
        except PyMongoError as e:
            logger.exception("project.fetch_failed", project_id=project_id)
            raise StoreError("Project lookup failed") from e

        if not doc:
            raise NotFoundError("Project not found")

        return self._doc_to_project(doc)

    async def find_ticket_by_number(self, project: Project, ticket_number: int) -> Ticket:
        """
        Find a ticket by its number within a project.

        Raises:
            NotFoundError: If the project has no such ticket
        """
        try:
            doc = await self.tickets.find_one({
                "project_id": {"$in": self._project_refs(project.id)},
                "ticket_number": ticket_number,
            })
        except PyMongoError as e:
            logger.exception("ticket.lookup_failed", project_id=project.id)
            raise StoreError("Ticket lookup failed") from e

        if not doc:
            raise NotFoundError(f'Ticket #{ticket_number} not found in project "{project.name}"')

        return self._doc_to_ticket(doc)

    async def get_ticket(self, ticket_id: str, project: Optional[Project] = None) -> Ticket:
        """
        Get a ticket by ID, optionally scoped to a project.

        Raises:
            NotFoundError: If the ticket does not exist in this project
        """
        query = _id_query(ticket_id)
        if project is not None:
            query["project_id"] = {"$in": self._project_refs(project.id)}
        try:
            doc = await self.tickets.find_one(query)
        except PyMongoError as e:
            logger.exception("ticket.fetch_failed", ticket_id=ticket_id)
            raise StoreError("Ticket lookup failed") from e

        if not doc:
            raise NotFoundError("Ticket not found")

        return self._doc_to_ticket(doc)

    async def list_recent_projects(self, limit: int = 5) -> list[Project]:
        """
        List the most recently created projects.

        Args:
            limit: Maximum number of projects

        Returns:
            Projects, most recent first
        """
        try:
            cursor = self.projects.find({}, sort=[("created_at", DESCENDING)], limit=limit)
            docs = await cursor.to_list(length=limit)
        except PyMongoError as e:
            logger.exception("project.list_failed")
            raise StoreError("Project listing failed") from e

        return [self._doc_to_project(doc) for doc in docs]

    @staticmethod
    def _project_refs(project_id: str) -> list:
        refs: list = [project_id]
        if ObjectId.is_valid(project_id):
            refs.append(ObjectId(project_id))
        return refs

    async def get_project_name(self, project_id: str) -> Optional[str]:
        """Project name for display, or None if the project is gone."""
        try:
            project = await self.get_project(project_id)
        except NotFoundError:
            return None
        return project.name
