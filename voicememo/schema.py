"""
Notion database bootstrap and live schema lookup.

On first start the TODO, Notes and Journal databases are created under
PARENT_PAGE_ID and their IDs are written back to the .env file. Every
start then reads the priority and category select options once; those
lists constrain extraction prompts and validate items before sync.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import set_key

from .config import EngineConfig
from .errors import ConfigError
from .notion import NotionClient

logger = logging.getLogger(__name__)

TODO_PROPERTIES = {
    "title": {"title": {}},
    "description": {"rich_text": {}},
    "priority": {
        "select": {
            "options": [
                {"name": "asap", "color": "red"},
                {"name": "soon", "color": "yellow"},
                {"name": "eventually", "color": "gray"},
            ]
        }
    },
    "status": {
        "select": {
            "options": [
                {"name": "not started", "color": "gray"},
                {"name": "in progress", "color": "blue"},
                {"name": "done", "color": "green"},
            ]
        }
    },
    "created_date": {"date": {}},
    "source": {"rich_text": {}},
}

NOTES_PROPERTIES = {
    "title": {"title": {}},
    "content": {"rich_text": {}},
    "category": {
        "select": {
            "options": [
                {"name": "project idea", "color": "purple"},
                {"name": "feature idea", "color": "blue"},
                {"name": "research item", "color": "orange"},
                {"name": "general", "color": "gray"},
            ]
        }
    },
    "created_date": {"date": {}},
    "source": {"rich_text": {}},
}

JOURNAL_PROPERTIES = {
    "title": {"title": {}},
    "date": {"date": {}},
    "processed": {"checkbox": {}},
}

# (config attribute, env var, database title, properties)
_DATABASES = (
    ("todo_database_id", "NOTION_TODO_DATABASE_ID", "TODOs", TODO_PROPERTIES),
    ("notes_database_id", "NOTION_NOTES_DATABASE_ID", "Notes", NOTES_PROPERTIES),
    ("journal_database_id", "NOTION_JOURNAL_DATABASE_ID", "Journal", JOURNAL_PROPERTIES),
)


@dataclass
class NotionSchema:
    """Database IDs plus the live select options, fetched once at startup."""

    todo_database_id: str
    notes_database_id: str
    journal_database_id: str
    priorities: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)


def select_options(database: dict, property_name: str) -> list[str]:
    """Option names of a select property, in the order Notion returns them."""
    prop = database.get("properties", {}).get(property_name) or {}
    options = (prop.get("select") or {}).get("options") or []
    return [opt["name"] for opt in options if opt.get("name")]


async def bootstrap_databases(
    client: NotionClient,
    config: EngineConfig,
    env_file: Optional[Path] = Path(".env"),
) -> list[str]:
    """Create whichever databases have no configured ID.

    New IDs are stored on ``config`` and, when ``env_file`` is given,
    persisted there so the next start reuses them.

    Returns:
        Names of the databases that were created.
    """
    created = []
    for attr, env_var, title, properties in _DATABASES:
        if getattr(config, attr):
            continue
        db = await client.create_database(config.parent_page_id, title, properties)
        setattr(config, attr, db["id"])
        created.append(title)
        logger.info(f"Created {title} database: {db['id']}")
        if env_file is not None:
            Path(env_file).touch(exist_ok=True)
            set_key(str(env_file), env_var, db["id"])

    if created and env_file is not None:
        logger.info(f"Database IDs written to {env_file}")
    return created


async def fetch_schema(client: NotionClient, config: EngineConfig) -> NotionSchema:
    """Read database IDs from config and the select options from Notion.

    Raises:
        ConfigError: a database ID is still missing (bootstrap not run).
    """
    missing = [env_var for attr, env_var, _, _ in _DATABASES if not getattr(config, attr)]
    if missing:
        raise ConfigError(f"Database IDs not available: {', '.join(missing)}")

    todo_db = await client.retrieve_database(config.todo_database_id)
    notes_db = await client.retrieve_database(config.notes_database_id)

    schema = NotionSchema(
        todo_database_id=config.todo_database_id,
        notes_database_id=config.notes_database_id,
        journal_database_id=config.journal_database_id,
        priorities=select_options(todo_db, "priority"),
        categories=select_options(notes_db, "category"),
    )
    logger.info(f"Schema loaded | Priorities: {schema.priorities} | Categories: {schema.categories}")
    if not schema.priorities:
        logger.warning("TODO database has no priority options; every task will be rejected")
    return schema


async def initialize_schema(
    client: NotionClient,
    config: EngineConfig,
    env_file: Optional[Path] = Path(".env"),
) -> NotionSchema:
    """Bootstrap any missing databases, then load the live schema."""
    await bootstrap_databases(client, config, env_file)
    return await fetch_schema(client, config)
