"""
CRM activity types.

An activity is one of four tagged variants sharing customer/user/subject/
created_at. parse_activity() turns a request body into the right variant:

    parse_activity({'type': 'call', 'customerId': 7, 'subject': 'Intro',
                    'outcome': 'left_voicemail', 'durationMinutes': 3})
    -> CallActivity(...)
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional, Dict, Any


class ActivityKind(Enum):
    CALL = "call"
    EMAIL = "email"
    NOTE = "note"
    QUOTE = "quote"


class CallOutcome(Enum):
    CONNECTED = "connected"
    LEFT_VOICEMAIL = "left_voicemail"
    NO_ANSWER = "no_answer"
    WRONG_NUMBER = "wrong_number"


@dataclass
class Activity:
    customer_id: int
    user_id: Optional[int]
    subject: str
    created_at: datetime = field(default_factory=datetime.now)

    kind = None

    def description(self) -> str:
        return ''

    def details(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'type': self.kind.value,
            'customerId': self.customer_id,
            'userId': self.user_id,
            'subject': self.subject,
            'createdAt': self.created_at.isoformat(),
        }
        data.update(self.details())
        return data


@dataclass
class CallActivity(Activity):
    outcome: CallOutcome = CallOutcome.CONNECTED
    duration_minutes: int = 0

    kind = ActivityKind.CALL

    def __post_init__(self):
        if isinstance(self.outcome, str):
            self.outcome = CallOutcome(self.outcome)
        if self.duration_minutes < 0:
            raise ValueError('durationMinutes cannot be negative')

    def description(self):
        return f'Call ({self.outcome.value.replace("_", " ")}, {self.duration_minutes} min)'

    def details(self):
        return {'outcome': self.outcome.value, 'durationMinutes': self.duration_minutes}


@dataclass
class EmailActivity(Activity):
    to: str = ''
    body: str = ''

    kind = ActivityKind.EMAIL

    def __post_init__(self):
        if not self.to or '@' not in self.to:
            raise ValueError('email activity needs a valid "to" address')

    def description(self):
        return self.body

    def details(self):
        return {'to': self.to, 'body': self.body}


@dataclass
class NoteActivity(Activity):
    body: str = ''

    kind = ActivityKind.NOTE

    def description(self):
        return self.body

    def details(self):
        return {'body': self.body}


@dataclass
class QuoteActivity(Activity):
    stock_number: str = ''
    amount: Decimal = Decimal('0')

    kind = ActivityKind.QUOTE

    def __post_init__(self):
        if not self.stock_number:
            raise ValueError('quote activity needs a stockNumber')
        if not isinstance(self.amount, Decimal):
            try:
                self.amount = Decimal(str(self.amount))
            except InvalidOperation:
                raise ValueError(f'Invalid quote amount: {self.amount!r}')
        if self.amount <= 0:
            raise ValueError('quote amount must be positive')

    def description(self):
        return f'Quoted {self.stock_number} at ${self.amount:,.2f}'

    def details(self):
        return {'stockNumber': self.stock_number, 'amount': str(self.amount)}


ACTIVITY_TYPES = {
    ActivityKind.CALL.value: CallActivity,
    ActivityKind.EMAIL.value: EmailActivity,
    ActivityKind.NOTE.value: NoteActivity,
    ActivityKind.QUOTE.value: QuoteActivity,
}


def _required(data, key):
    value = data.get(key)
    if value is None or value == '':
        raise ValueError(f'Missing required field: {key}')
    return value


def _customer_id(data) -> int:
    value = _required(data, 'customerId')
    if isinstance(value, bool):
        raise ValueError('customerId must be an integer')
    try:
        customer_id = int(value)
    except (TypeError, ValueError):
        raise ValueError('customerId must be an integer')
    if customer_id <= 0 or (isinstance(value, float) and value != customer_id):
        raise ValueError('customerId must be an integer')
    return customer_id


def parse_activity(data: Dict[str, Any], user_id: Optional[int] = None) -> Activity:
    """Build the variant named by data['type']. Raises ValueError on bad input."""
    kind = data.get('type')
    if kind not in ACTIVITY_TYPES:
        raise ValueError(f'Unknown activity type {kind!r}. Use: {", ".join(ACTIVITY_TYPES)}')

    common = {
        'customer_id': _customer_id(data),
        'user_id': user_id if user_id is not None else data.get('userId'),
        'subject': _required(data, 'subject'),
    }

    try:
        if kind == 'call':
            return CallActivity(
                outcome=data.get('outcome') or CallOutcome.CONNECTED.value,
                duration_minutes=int(data.get('durationMinutes') or 0),
                **common)
        if kind == 'email':
            return EmailActivity(to=_required(data, 'to'), body=data.get('body') or '', **common)
        if kind == 'note':
            return NoteActivity(body=data.get('body') or '', **common)
        return QuoteActivity(
            stock_number=_required(data, 'stockNumber'),
            amount=_required(data, 'amount'),
            **common)
    except (TypeError, ValueError) as e:
        raise ValueError(str(e)) from e


def touches_last_contacted(activity: Activity) -> bool:
    """Calls and emails count as contact with the customer."""
    return activity.kind in (ActivityKind.CALL, ActivityKind.EMAIL)
