"""Tracker column export - one-page PDF profile of a task column using fpdf2.

Layout:
- Title bar tinted with the column highlight colour
- Overview grid: criticality, duration, reminder, last update
- Description
- Links (only those with a URL)
- The most recent chat messages
"""

import io
import os
import re
import unicodedata
import logging
from fpdf import FPDF

from .models import TaskColumn, REMINDER_LABELS

logger = logging.getLogger('dealerdesk.tracker.export')

RECENT_MESSAGES = 6

_FONT_SEARCH = {
    'regular': [
        '/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf',
        '/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf',
    ],
    'bold': [
        '/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf',
        '/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf',
    ],
}


def _find_font(style='regular'):
    for path in _FONT_SEARCH.get(style, []):
        if os.path.exists(path):
            return path
    return None


def _strip_diacritics(text):
    """Map text onto Latin-1 for the Helvetica fallback."""
    text = str(text)
    replacements = {'\u2014': '-', '\u2013': '-', '\u2018': "'", '\u2019': "'",
                    '\u201c': '"', '\u201d': '"', '\u2026': '...', '\u00a0': ' '}
    for old, new in replacements.items():
        text = text.replace(old, new)
    nfkd = unicodedata.normalize('NFKD', text)
    result = ''.join(c for c in nfkd if not unicodedata.combining(c))
    return result.encode('latin-1', errors='replace').decode('latin-1')


def _hex_to_rgb(color):
    color = (color or '').lstrip('#')
    if len(color) != 6:
        return (15, 23, 42)
    return tuple(int(color[i:i + 2], 16) for i in (0, 2, 4))


def _text_on(rgb):
    # Dark text on light swatches, white text otherwise
    r, g, b = rgb
    return (15, 23, 42) if (r * 299 + g * 587 + b * 114) / 1000 > 150 else (255, 255, 255)


def export_filename(column: TaskColumn) -> str:
    slug = re.sub(r'[^a-z0-9]+', '-', _strip_diacritics(column.title or '').lower()).strip('-')
    return f'{slug or "column"}-profile.pdf'


class ColumnProfilePDF(FPDF):
    """Portrait A4 page for a single column."""

    def __init__(self, column: TaskColumn):
        super().__init__(orientation='P', unit='mm', format='A4')
        self.column = column
        self._unicode = False
        self._font_family = 'Helvetica'
        self._setup_fonts()

    def _setup_fonts(self):
        regular = _find_font('regular')
        bold = _find_font('bold')
        if regular:
            try:
                self.add_font('profile', '', regular)
                self.add_font('profile', 'B', bold or regular)
                self._unicode = True
                self._font_family = 'profile'
                logger.debug('Using Unicode font: %s', regular)
            except (OSError, RuntimeError):
                logger.debug('Failed to load Unicode font, using Helvetica')

    def _t(self, text):
        if self._unicode:
            return str(text) if text else ''
        return _strip_diacritics(text) if text else ''

    def header(self):
        rgb = _hex_to_rgb(self.column.highlight_color)
        self.set_fill_color(*rgb)
        self.set_text_color(*_text_on(rgb))
        self.set_font(self._font_family, 'B', 16)
        self.cell(0, 12, self._t(self.column.title), fill=True, new_x='LMARGIN', new_y='NEXT')
        self.set_text_color(0, 0, 0)
        self.ln(4)

    def footer(self):
        self.set_y(-15)
        self.set_font(self._font_family, '', 7)
        self.set_text_color(100, 116, 139)
        self.cell(0, 10, self._t(f'Column {self.column.id}'), align='C')

    def section(self, title):
        self.set_font(self._font_family, 'B', 11)
        self.cell(0, 7, self._t(title), new_x='LMARGIN', new_y='NEXT')
        self.set_draw_color(203, 213, 225)
        self.line(self.l_margin, self.get_y(), self.w - self.r_margin, self.get_y())
        self.ln(2)

    def field(self, label, value):
        self.set_font(self._font_family, 'B', 9)
        self.cell(40, 6, self._t(label))
        self.set_font(self._font_family, '', 9)
        self.cell(0, 6, self._t(value), new_x='LMARGIN', new_y='NEXT')


def export_pdf(column: TaskColumn) -> io.BytesIO:
    """Render the column profile. Returns a rewound BytesIO."""
    pdf = ColumnProfilePDF(column)
    pdf.set_auto_page_break(auto=False)
    pdf.add_page()
    f = pdf._font_family

    reminder = column.reminder
    reminder_text = REMINDER_LABELS.get(reminder.type, reminder.type.value)
    if reminder.time:
        reminder_text = f'{reminder_text} at {reminder.time.replace("T", " ")}'
    if reminder.hide_after_dismiss:
        reminder_text += ' (hidden after dismiss)'

    pdf.section('Overview')
    pdf.field('Criticality', f'{column.criticality} / 10')
    pdf.field('Duration', column.duration or '-')
    pdf.field('Reminder', reminder_text)
    pdf.field('Locked', 'Yes' if column.locked else 'No')
    pdf.field('Last updated', column.last_updated or '-')
    pdf.ln(3)

    pdf.section('Description')
    pdf.set_font(f, '', 9)
    # Keep the export to one page
    pdf.multi_cell(0, 5, pdf._t((column.description or 'No description.')[:1500]),
                   new_x='LMARGIN', new_y='NEXT')
    pdf.ln(3)

    links = [link for link in column.links if link.url]
    if links:
        pdf.section('Links')
        pdf.set_font(f, '', 9)
        for link in links[:10]:
            label = link.label or link.url
            pdf.set_text_color(37, 99, 235)
            pdf.cell(0, 5, pdf._t(label[:90]), link=link.url, new_x='LMARGIN', new_y='NEXT')
        pdf.set_text_color(0, 0, 0)
        pdf.ln(3)

    messages = column.history[-RECENT_MESSAGES:]
    pdf.section('Recent messages')
    if not messages:
        pdf.set_font(f, '', 9)
        pdf.cell(0, 5, pdf._t('No messages yet.'), new_x='LMARGIN', new_y='NEXT')
    for message in messages:
        pdf.set_font(f, 'B', 8)
        pdf.set_text_color(100, 116, 139)
        pdf.cell(0, 4, pdf._t(message.created_at[:16].replace('T', ' ')), new_x='LMARGIN', new_y='NEXT')
        pdf.set_text_color(0, 0, 0)
        pdf.set_font(f, '', 9)
        pdf.multi_cell(0, 5, pdf._t(message.content[:400]), new_x='LMARGIN', new_y='NEXT')
        pdf.ln(1)

    output = io.BytesIO()
    pdf.output(output)
    output.seek(0)
    logger.info(f'Exported column {column.id} ({len(messages)} messages)')
    return output
