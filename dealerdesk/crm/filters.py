"""CRM customer filter state and its URL query-string layout.

FilterState is what the customers page, saved views and the search repository
all share. On the wire it is a flat list of query pairs:

    assignedToId=12&status=hot&status=warm&neverContacted=true

Scalars use camelCase keys and appear at most once; booleans are written only
when set; the three multi-selects repeat a singular key (status, temperature,
priority).
"""

from dataclasses import dataclass, field, fields, replace
from typing import List, Tuple
from urllib.parse import parse_qsl, urlencode


# ============== Option tables ==============

STATUS_OPTIONS = [
    {'value': 'new', 'label': 'New'},
    {'value': 'contacted', 'label': 'Contacted'},
    {'value': 'qualified', 'label': 'Qualified'},
    {'value': 'applied', 'label': 'Applied'},
    {'value': 'approved', 'label': 'Approved'},
    {'value': 'won', 'label': 'Won'},
    {'value': 'dead', 'label': 'Dead'},
]

TEMPERATURE_OPTIONS = [
    {'value': 'hot', 'label': 'Hot'},
    {'value': 'warm', 'label': 'Warm'},
    {'value': 'cold', 'label': 'Cold'},
    {'value': 'dead', 'label': 'Dead'},
]

PRIORITY_OPTIONS = [
    {'value': 'urgent', 'label': 'Urgent'},
    {'value': 'high', 'label': 'High'},
    {'value': 'medium', 'label': 'Medium'},
    {'value': 'low', 'label': 'Low'},
]

LOST_REASON_OPTIONS = [
    {'value': 'price', 'label': 'Price - Too Expensive'},
    {'value': 'no_credit', 'label': 'No Credit'},
    {'value': 'bought_elsewhere', 'label': 'Bought Elsewhere'},
    {'value': 'no_response', 'label': 'No Response'},
    {'value': 'other', 'label': 'Other'},
]

FINANCING_TYPE_OPTIONS = [
    {'value': 'cash', 'label': 'Cash'},
    {'value': 'finance', 'label': 'Finance'},
    {'value': 'rto', 'label': 'RTO (Rent-to-Own)'},
]

APPROVAL_STATUS_OPTIONS = [
    {'value': 'approved', 'label': 'Approved'},
    {'value': 'pending', 'label': 'Pending'},
    {'value': 'need_stips', 'label': 'Need Stips'},
    {'value': 'declined', 'label': 'Declined'},
]

TRAILER_TYPE_OPTIONS = [
    {'value': 'enclosed', 'label': 'Enclosed'},
    {'value': 'open', 'label': 'Open'},
    {'value': 'dump', 'label': 'Dump'},
    {'value': 'flatbed', 'label': 'Flatbed'},
    {'value': 'utility', 'label': 'Utility'},
    {'value': 'car_hauler', 'label': 'Car Hauler'},
    {'value': 'equipment', 'label': 'Equipment'},
    {'value': 'livestock', 'label': 'Livestock'},
]

TRAILER_SIZE_OPTIONS = [
    {'value': s, 'label': s} for s in (
        '4x6', '5x8', '5x10', '6x10', '6x12', '7x14',
        '7x16', '8x16', '8x20', '8.5x20', '8.5x24',
    )
]

US_STATES = [
    'AL', 'AK', 'AZ', 'AR', 'CA', 'CO', 'CT', 'DE', 'FL', 'GA',
    'HI', 'ID', 'IL', 'IN', 'IA', 'KS', 'KY', 'LA', 'ME', 'MD',
    'MA', 'MI', 'MN', 'MS', 'MO', 'MT', 'NE', 'NV', 'NH', 'NJ',
    'NM', 'NY', 'NC', 'ND', 'OH', 'OK', 'OR', 'PA', 'RI', 'SC',
    'SD', 'TN', 'TX', 'UT', 'VT', 'VA', 'WA', 'WV', 'WI', 'WY',
]


def _labels(options):
    return {o['value']: o['label'] for o in options}


# ============== Filter state ==============

@dataclass(frozen=True)
class FilterState:
    # People & assignment
    assigned_to_id: str = ''
    manager_id: str = ''
    unassigned_only: bool = False
    # Status
    statuses: Tuple[str, ...] = ()
    temperatures: Tuple[str, ...] = ()
    priorities: Tuple[str, ...] = ()
    lost_reason: str = ''
    # Financing
    financing_type: str = ''
    rto_approval_status: str = ''
    finance_approval_status: str = ''
    applied: str = ''  # '' | 'true' | 'false'
    # Location
    state: str = ''
    city: str = ''
    zipcode: str = ''
    # Trailer
    trailer_type: str = ''
    trailer_size: str = ''
    stock_number: str = ''
    vin: str = ''
    # Time ranges (YYYY-MM-DD)
    created_after: str = ''
    created_before: str = ''
    last_contacted_after: str = ''
    last_contacted_before: str = ''
    # Quick toggles
    never_contacted: bool = False
    follow_up_overdue: bool = False

    def __post_init__(self):
        for name in MULTI_KEYS:
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value or ()))

    def __eq__(self, other):
        # Multi-select order carries no meaning
        if not isinstance(other, FilterState):
            return NotImplemented
        for f in fields(self):
            a, b = getattr(self, f.name), getattr(other, f.name)
            if f.name in MULTI_KEYS:
                a, b = sorted(a), sorted(b)
            if a != b:
                return False
        return True

    def __hash__(self):
        return hash(tuple(
            tuple(sorted(getattr(self, f.name))) if f.name in MULTI_KEYS else getattr(self, f.name)
            for f in fields(self)
        ))

    def to_dict(self):
        """camelCase dict, as the customers page keeps it."""
        return {QUERY_KEYS.get(f.name, f.name): (list(getattr(self, f.name)) if f.name in MULTI_KEYS
                                                  else getattr(self, f.name))
                for f in fields(self)}


# field name -> repeated query key
MULTI_KEYS = {
    'statuses': 'status',
    'temperatures': 'temperature',
    'priorities': 'priority',
}

BOOL_KEYS = ('unassigned_only', 'never_contacted', 'follow_up_overdue')


def _camel(name):
    head, *rest = name.split('_')
    return head + ''.join(part.title() for part in rest)


# field name -> camelCase query key, scalars only
QUERY_KEYS = {
    f.name: _camel(f.name) for f in fields(FilterState) if f.name not in MULTI_KEYS
}

DEFAULT_FILTERS = FilterState()


# ============== Query params ==============

def to_query_params(filters: FilterState) -> List[Tuple[str, str]]:
    params = []
    for f in fields(FilterState):
        value = getattr(filters, f.name)
        if f.name in MULTI_KEYS:
            params.extend((MULTI_KEYS[f.name], v) for v in value)
        elif f.name in BOOL_KEYS:
            if value:
                params.append((QUERY_KEYS[f.name], 'true'))
        elif value:
            params.append((QUERY_KEYS[f.name], str(value)))
    return params


def to_query_string(filters: FilterState) -> str:
    return urlencode(to_query_params(filters))


class _ParamLookup:
    """Uniform get/getlist over the shapes query params arrive in."""

    def __init__(self, params):
        if params is None:
            params = []
        if isinstance(params, str):
            params = parse_qsl(params.lstrip('?'), keep_blank_values=True)
        if hasattr(params, 'getlist'):
            self._pairs = [(k, v) for k in params.keys() for v in params.getlist(k)]
        elif hasattr(params, 'items'):
            self._pairs = []
            for k, v in params.items():
                if isinstance(v, (list, tuple)):
                    self._pairs.extend((k, item) for item in v)
                else:
                    self._pairs.append((k, v))
        else:
            self._pairs = list(params)

    def get(self, key):
        for k, v in self._pairs:
            if k == key:
                return v
        return None

    def getlist(self, key):
        return [v for k, v in self._pairs if k == key]


def from_query_params(params) -> FilterState:
    """Parse a MultiDict, a {key: [values]} mapping, a query string or (key, value) pairs."""
    lookup = _ParamLookup(params)
    values = {}
    for f in fields(FilterState):
        if f.name in MULTI_KEYS:
            values[f.name] = tuple(v for v in lookup.getlist(MULTI_KEYS[f.name]) if v)
        elif f.name in BOOL_KEYS:
            values[f.name] = lookup.get(QUERY_KEYS[f.name]) == 'true'
        else:
            values[f.name] = lookup.get(QUERY_KEYS[f.name]) or ''
    return FilterState(**values)


# ============== Active filters & chips ==============

def count_active_filters(filters: FilterState) -> int:
    """Number of fields that differ from the default. A non-empty multi-select counts once."""
    return sum(1 for f in fields(FilterState) if getattr(filters, f.name))


@dataclass(frozen=True)
class FilterChip:
    key: str
    label: str
    value: str = None

    def to_dict(self):
        return {'key': self.key, 'label': self.label, 'value': self.value}


_STATUS_LABELS = _labels(STATUS_OPTIONS)
_TEMPERATURE_LABELS = _labels(TEMPERATURE_OPTIONS)
_PRIORITY_LABELS = _labels(PRIORITY_OPTIONS)
_LOST_REASON_LABELS = _labels(LOST_REASON_OPTIONS)
_FINANCING_LABELS = _labels(FINANCING_TYPE_OPTIONS)
_APPROVAL_LABELS = _labels(APPROVAL_STATUS_OPTIONS)
_TRAILER_TYPE_LABELS = _labels(TRAILER_TYPE_OPTIONS)

# field -> (prefix, label table); the value itself is shown when it has no label
_CHIP_FORMATS = {
    'assigned_to_id': ('Rep', None),
    'manager_id': ('Manager', None),
    'lost_reason': ('Lost', _LOST_REASON_LABELS),
    'financing_type': ('Financing', _FINANCING_LABELS),
    'rto_approval_status': ('RTO', _APPROVAL_LABELS),
    'finance_approval_status': ('Finance', _APPROVAL_LABELS),
    'state': ('State', None),
    'city': ('City', None),
    'zipcode': ('ZIP', None),
    'trailer_type': ('Type', _TRAILER_TYPE_LABELS),
    'trailer_size': ('Size', None),
    'stock_number': ('Stock #', None),
    'vin': ('VIN', None),
    'created_after': ('Created After', None),
    'created_before': ('Created Before', None),
    'last_contacted_after': ('Contacted After', None),
    'last_contacted_before': ('Contacted Before', None),
}

_MULTI_CHIP_FORMATS = {
    'statuses': ('Status', _STATUS_LABELS),
    'temperatures': ('Temp', _TEMPERATURE_LABELS),
    'priorities': ('Priority', _PRIORITY_LABELS),
}

_TOGGLE_LABELS = {
    'unassigned_only': 'Unassigned Only',
    'never_contacted': 'Never Contacted',
    'follow_up_overdue': 'Follow-up Overdue',
}


def filter_chips(filters: FilterState) -> List[FilterChip]:
    """One removable chip per active scalar and one per selected multi-select value."""
    chips = []
    for f in fields(FilterState):
        name = f.name
        value = getattr(filters, name)
        if not value:
            continue
        if name in _TOGGLE_LABELS:
            chips.append(FilterChip(name, _TOGGLE_LABELS[name]))
        elif name in _MULTI_CHIP_FORMATS:
            prefix, table = _MULTI_CHIP_FORMATS[name]
            chips.extend(FilterChip(name, f'{prefix}: {table.get(v, v)}', v) for v in value)
        elif name == 'applied':
            chips.append(FilterChip(name, 'Has Applied' if value == 'true' else 'Not Applied'))
        else:
            prefix, table = _CHIP_FORMATS[name]
            shown = value.upper() if name == 'vin' else (table or {}).get(value, value)
            chips.append(FilterChip(name, f'{prefix}: {shown}'))
    return chips


def clear_filter(filters: FilterState, key: str, value: str = None) -> FilterState:
    """Drop one chip. Multi-selects lose only `value` (all values when value is None)."""
    names = {f.name for f in fields(FilterState)}
    if key not in names:
        raise KeyError(f'Unknown filter: {key}')
    if key in MULTI_KEYS:
        current = getattr(filters, key)
        kept = () if value is None else tuple(v for v in current if v != value)
        return replace(filters, **{key: kept})
    return replace(filters, **{key: getattr(DEFAULT_FILTERS, key)})


def filter_options():
    """Option tables for the filter sheet."""
    return {
        'statuses': STATUS_OPTIONS,
        'temperatures': TEMPERATURE_OPTIONS,
        'priorities': PRIORITY_OPTIONS,
        'lostReasons': LOST_REASON_OPTIONS,
        'financingTypes': FINANCING_TYPE_OPTIONS,
        'approvalStatuses': APPROVAL_STATUS_OPTIONS,
        'trailerTypes': TRAILER_TYPE_OPTIONS,
        'trailerSizes': TRAILER_SIZE_OPTIONS,
        'states': US_STATES,
    }
