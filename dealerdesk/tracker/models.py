"""
Progress tracker data models.

Every model is a frozen dataclass with tuple sequences: board mutations build
new values with dataclasses.replace() so that undo snapshots can never be
changed after the fact. to_dict()/from_dict() use the camelCase layout that is
persisted in tracker_snapshots.
"""

import os
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple, Dict, Any, List

MAX_LINKS = 30
DESCRIPTION_LIMIT = 10000
TRASH_LIMIT = int(os.environ.get('TRACKER_TRASH_LIMIT', '100'))
CRITICALITY_MIN = 1
CRITICALITY_MAX = 10

HIGHLIGHT_COLORS = (
    '#ffffff', '#f8fafc', '#e2e8f0', '#cbd5f5', '#a5b4fc',
    '#60a5fa', '#38bdf8', '#22d3ee', '#2dd4bf', '#34d399',
    '#a3e635', '#facc15', '#fb923c', '#f97316', '#ef4444',
    '#dc2626', '#b91c1c', '#7f1d1d', '#312e81', '#0f172a',
)
DEFAULT_HIGHLIGHT = '#0f172a'


class ReminderType(Enum):
    """How a column reminder is delivered."""
    NOTIFICATION = "notification"
    RINGTONE = "ringtone"
    ALARM = "alarm"


REMINDER_LABELS = {
    ReminderType.NOTIFICATION: 'Notification',
    ReminderType.RINGTONE: 'Subtle Ringtone',
    ReminderType.ALARM: 'Alarm',
}


def make_id() -> str:
    return uuid.uuid4().hex


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _minute_now() -> str:
    return datetime.now().strftime('%Y-%m-%dT%H:%M')


@dataclass(frozen=True)
class Reminder:
    type: ReminderType = ReminderType.NOTIFICATION
    time: str = ''
    hide_after_dismiss: bool = False

    def __post_init__(self):
        if isinstance(self.type, str):
            object.__setattr__(self, 'type', ReminderType(self.type))

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type.value, 'time': self.time, 'hideAfterDismiss': self.hide_after_dismiss}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Reminder':
        return cls(
            type=data.get('type', ReminderType.NOTIFICATION.value),
            time=data.get('time', ''),
            hide_after_dismiss=bool(data.get('hideAfterDismiss', False)),
        )


@dataclass(frozen=True)
class ColumnLink:
    id: str
    label: str = ''
    url: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'label': self.label, 'url': self.url}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ColumnLink':
        return cls(id=data['id'], label=data.get('label', ''), url=data.get('url', ''))


@dataclass(frozen=True)
class TaskMessage:
    """One chat entry. Entries are only ever appended, never edited."""
    id: str
    content: str
    created_at: str

    @classmethod
    def new(cls, content: str) -> 'TaskMessage':
        return cls(id=make_id(), content=content, created_at=utc_now())

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'content': self.content, 'createdAt': self.created_at}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TaskMessage':
        return cls(id=data['id'], content=data['content'], created_at=data['createdAt'])


@dataclass(frozen=True)
class TaskColumn:
    """A task card on the board."""
    id: str
    title: str = 'Untitled column'
    description: str = ''
    criticality: int = 3
    highlight_color: str = DEFAULT_HIGHLIGHT
    duration: str = '45m'
    reminder: Reminder = field(default_factory=Reminder)
    locked: bool = False
    links: Tuple[ColumnLink, ...] = ()
    history: Tuple[TaskMessage, ...] = ()
    image: Optional[str] = None
    last_updated: str = ''
    trashed_at: Optional[str] = None

    def with_message(self, content: str) -> 'TaskColumn':
        return replace(self, history=self.history + (TaskMessage.new(content),))

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'criticality': self.criticality,
            'highlightColor': self.highlight_color,
            'duration': self.duration,
            'reminder': self.reminder.to_dict(),
            'locked': self.locked,
            'links': [link.to_dict() for link in self.links],
            'history': [msg.to_dict() for msg in self.history],
            'lastUpdated': self.last_updated,
        }
        if self.image:
            data['image'] = self.image
        if self.trashed_at:
            data['trashedAt'] = self.trashed_at
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TaskColumn':
        return cls(
            id=data['id'],
            title=data.get('title', 'Untitled column'),
            description=data.get('description', ''),
            criticality=int(data.get('criticality', 3)),
            highlight_color=data.get('highlightColor', DEFAULT_HIGHLIGHT),
            duration=data.get('duration', '45m'),
            reminder=Reminder.from_dict(data.get('reminder') or {}),
            locked=bool(data.get('locked', False)),
            links=tuple(ColumnLink.from_dict(l) for l in data.get('links', [])),
            history=tuple(TaskMessage.from_dict(m) for m in data.get('history', [])),
            image=data.get('image'),
            last_updated=data.get('lastUpdated', ''),
            trashed_at=data.get('trashedAt'),
        )


@dataclass(frozen=True)
class Category:
    """A fixed project-size bucket. Only `columns` ever changes."""
    id: str
    name: str
    step_range: str = ''
    column_range: str = ''
    description: str = ''
    columns: Tuple[TaskColumn, ...] = ()

    def index_of(self, column_id: str) -> int:
        for i, column in enumerate(self.columns):
            if column.id == column_id:
                return i
        return -1

    def __contains__(self, column_id) -> bool:
        return self.index_of(column_id) != -1

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'stepRange': self.step_range,
            'columnRange': self.column_range,
            'description': self.description,
            'columns': [c.to_dict() for c in self.columns],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Category':
        return cls(
            id=data['id'],
            name=data['name'],
            step_range=data.get('stepRange', ''),
            column_range=data.get('columnRange', ''),
            description=data.get('description', ''),
            columns=tuple(TaskColumn.from_dict(c) for c in data.get('columns', [])),
        )


CATEGORY_BLUEPRINTS = (
    Category(
        id='cat-1',
        name='Category 1 - Sprint Starters',
        step_range='3 - 10 task steps',
        column_range='Ideal for 10 - 15 columns',
        description='Rapid prototypes, mini launches and focused experiments.',
    ),
    Category(
        id='cat-2',
        name='Category 2 - Momentum Builders',
        step_range='10 - 18 task steps',
        column_range='Curated for 15 - 25 columns',
        description='Cross-team initiatives with layered approvals and deeper documentation.',
    ),
    Category(
        id='cat-3',
        name='Category 3 - Signature Projects',
        step_range='18 - 30 task steps',
        column_range='Thrives with 25 - 40 columns',
        description='Product launches, brand refreshes and enterprise rollouts.',
    ),
    Category(
        id='cat-4',
        name='Category 4 - Master Plans',
        step_range='30+ task steps',
        column_range='Scaled for 40 - 80 columns',
        description='Multi-quarter epics with deep stakeholder alignment.',
    ),
)


@dataclass(frozen=True)
class BoardState:
    categories: Tuple[Category, ...] = ()
    trash: Tuple[TaskColumn, ...] = ()

    @classmethod
    def empty(cls) -> 'BoardState':
        return cls(categories=CATEGORY_BLUEPRINTS, trash=())

    def category(self, category_id: str) -> Optional[Category]:
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    def category_of(self, column_id: str) -> Optional[Category]:
        for category in self.categories:
            if column_id in category:
                return category
        return None

    def find_column(self, column_id: str) -> Optional[TaskColumn]:
        category = self.category_of(column_id)
        if category is None:
            return None
        return category.columns[category.index_of(column_id)]

    def column_ids(self) -> List[str]:
        return [c.id for cat in self.categories for c in cat.columns]

    def replace_category(self, category: Category) -> 'BoardState':
        return replace(self, categories=tuple(
            category if c.id == category.id else c for c in self.categories))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'categories': [c.to_dict() for c in self.categories],
            'trash': [c.to_dict() for c in self.trash],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BoardState':
        return cls(
            categories=tuple(Category.from_dict(c) for c in data['categories']),
            trash=tuple(TaskColumn.from_dict(c) for c in data.get('trash', [])),
        )


def create_empty_column() -> TaskColumn:
    return TaskColumn(
        id=make_id(),
        reminder=Reminder(time=_minute_now()),
        links=(ColumnLink(id=make_id(), label='Primary reference'),),
        last_updated=utc_now(),
    )
