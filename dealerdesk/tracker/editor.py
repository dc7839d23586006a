"""Column editor: a local draft of one column, committed only on save.

Usage:
    editor = ColumnEditor(column)
    editor.set_title('Trailer delivery prep')
    editor.set_criticality(9)
    editor.add_link(label='Spec sheet', url='https://...')
    store.save_column(editor.save())
"""

import io
import base64
import logging
from dataclasses import replace
from typing import Optional

from PIL import Image, UnidentifiedImageError

from .models import (
    TaskColumn, ColumnLink, ReminderType, HIGHLIGHT_COLORS,
    MAX_LINKS, DESCRIPTION_LIMIT, CRITICALITY_MIN, CRITICALITY_MAX, make_id, utc_now,
)

logger = logging.getLogger('dealerdesk.tracker.editor')

# Uploaded images are scaled down to fit this box before being embedded
MAX_IMAGE_SIZE = (512, 512)


class ColumnEditor:

    def __init__(self, column: TaskColumn):
        self.original = column
        self.draft: Optional[TaskColumn] = column

    def _update(self, **changes) -> TaskColumn:
        if self.draft is None:
            raise ValueError('Editor has been closed')
        self.draft = replace(self.draft, last_updated=utc_now(), **changes)
        return self.draft

    # -------------------- overview fields --------------------

    def set_title(self, title: str) -> TaskColumn:
        return self._update(title=(title or '').strip() or 'Untitled column')

    def set_description(self, description: str) -> TaskColumn:
        return self._update(description=(description or '')[:DESCRIPTION_LIMIT])

    def set_criticality(self, value) -> TaskColumn:
        try:
            level = int(value)
        except (TypeError, ValueError):
            raise ValueError(f'criticality must be an integer, got {value!r}')
        if level != value and not isinstance(value, str):
            raise ValueError(f'criticality must be an integer, got {value!r}')
        if not CRITICALITY_MIN <= level <= CRITICALITY_MAX:
            raise ValueError(f'criticality must be between {CRITICALITY_MIN} and {CRITICALITY_MAX}')
        return self._update(criticality=level)

    def set_duration(self, duration: str) -> TaskColumn:
        return self._update(duration=(duration or '').strip())

    def set_reminder(self, type=None, time=None, hide_after_dismiss=None) -> TaskColumn:
        reminder = self.draft.reminder
        if type is not None:
            try:
                reminder = replace(reminder, type=ReminderType(type))
            except ValueError:
                allowed = ', '.join(t.value for t in ReminderType)
                raise ValueError(f'Invalid reminder type {type!r}. Use: {allowed}')
        if time is not None:
            reminder = replace(reminder, time=time)
        if hide_after_dismiss is not None:
            reminder = replace(reminder, hide_after_dismiss=bool(hide_after_dismiss))
        return self._update(reminder=reminder)

    def set_highlight_color(self, color: str) -> TaskColumn:
        if color not in HIGHLIGHT_COLORS:
            raise ValueError(f'Color {color} is not in the highlight palette')
        return self._update(highlight_color=color)

    def upload_image(self, data: bytes, mimetype: Optional[str] = None) -> TaskColumn:
        """Validate an uploaded image and embed it as a PNG data URL."""
        try:
            img = Image.open(io.BytesIO(data))
            img.load()
        except (UnidentifiedImageError, OSError) as e:
            raise ValueError(f'Invalid image upload: {e}')

        if img.mode not in ('RGB', 'RGBA'):
            img = img.convert('RGBA')
        img.thumbnail(MAX_IMAGE_SIZE)

        buf = io.BytesIO()
        img.save(buf, format='PNG')
        encoded = base64.b64encode(buf.getvalue()).decode('ascii')
        logger.debug(f'Image embedded for column {self.draft.id} ({mimetype or "unknown type"}, {len(data)} bytes)')
        return self._update(image=f'data:image/png;base64,{encoded}')

    def remove_image(self) -> TaskColumn:
        return self._update(image=None)

    # -------------------- links --------------------

    def add_link(self, label: str = '', url: str = '') -> Optional[ColumnLink]:
        """Append a link slot. Returns None once the column holds MAX_LINKS links."""
        if len(self.draft.links) >= MAX_LINKS:
            return None
        link = ColumnLink(id=make_id(), label=label, url=url)
        self._update(links=self.draft.links + (link,))
        return link

    def update_link(self, link_id: str, label: Optional[str] = None, url: Optional[str] = None) -> ColumnLink:
        updated = None
        links = []
        for link in self.draft.links:
            if link.id == link_id:
                link = replace(
                    link,
                    label=link.label if label is None else label,
                    url=link.url if url is None else url,
                )
                updated = link
            links.append(link)
        if updated is None:
            raise KeyError(f'Link {link_id} not found')
        self._update(links=tuple(links))
        return updated

    def remove_link(self, link_id: str) -> bool:
        links = tuple(l for l in self.draft.links if l.id != link_id)
        if len(links) == len(self.draft.links):
            return False
        self._update(links=links)
        return True

    # -------------------- messenger --------------------

    def append_message(self, content: str) -> bool:
        if not content or not content.strip():
            return False
        self.draft = replace(self.draft.with_message(content), last_updated=utc_now())
        return True

    # -------------------- bulk form --------------------

    def apply(self, data: dict) -> TaskColumn:
        """Apply a JSON form body (camelCase keys, as sent by the editor dialog)."""
        if 'title' in data:
            self.set_title(data['title'])
        if 'description' in data:
            self.set_description(data['description'])
        if 'criticality' in data:
            self.set_criticality(data['criticality'])
        if 'duration' in data:
            self.set_duration(data['duration'])
        if 'highlightColor' in data:
            self.set_highlight_color(data['highlightColor'])
        reminder = data.get('reminder')
        if reminder:
            self.set_reminder(
                type=reminder.get('type'),
                time=reminder.get('time'),
                hide_after_dismiss=reminder.get('hideAfterDismiss'),
            )
        if 'links' in data:
            links = list(data['links'] or [])
            if len(links) > MAX_LINKS:
                raise ValueError(f'A column can hold at most {MAX_LINKS} links')
            self._update(links=tuple(
                ColumnLink(id=l.get('id') or make_id(), label=l.get('label', ''), url=l.get('url', ''))
                for l in links
            ))
        for message in data.get('newMessages') or []:
            self.append_message(message)
        return self.draft

    # -------------------- commit --------------------

    @property
    def dirty(self) -> bool:
        return self.draft is not None and self.draft != self.original

    def save(self) -> TaskColumn:
        """Close the editor and hand back the draft for BoardStore.save_column()."""
        if self.draft is None:
            raise ValueError('Editor has been closed')
        draft, self.draft = self.draft, None
        return draft

    def discard(self) -> None:
        self.draft = None
