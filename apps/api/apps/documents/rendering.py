"""
Prescription PDF rendering.

Draws A4 pages with Pillow and saves them as one PDF. The caller hands
over a bundle that has already been authorization-checked; nothing here
touches the database.
"""
import io
import textwrap
from dataclasses import dataclass

from PIL import Image, ImageDraw, ImageFont

RESOLUTION = 100  # dpi
PAGE_SIZE = (827, 1169)  # A4 at 100 dpi
MARGIN = 60
LINE_HEIGHT = 18
WRAP_WIDTH = 95  # characters per line with the default bitmap font


@dataclass(frozen=True)
class PrescriptionBundle:
    """Prescription with its patient, clinic and author, resolved for one clinic."""
    prescription: object
    patient: object
    clinic: object
    author: object


class _PageWriter:
    """Top-down text cursor that opens a new page when the current one is full."""

    def __init__(self, font):
        self.font = font
        self.pages = []
        self._new_page()

    def _new_page(self):
        page = Image.new('RGB', PAGE_SIZE, 'white')
        self.pages.append(page)
        self.draw = ImageDraw.Draw(page)
        self.y = MARGIN

    def _ensure_room(self, height):
        if self.y + height > PAGE_SIZE[1] - MARGIN:
            self._new_page()

    def line(self, text='', indent=0):
        self._ensure_room(LINE_HEIGHT)
        self.draw.text((MARGIN + indent, self.y), text, fill='black', font=self.font)
        self.y += LINE_HEIGHT

    def paragraph(self, text, indent=0):
        for raw_line in (text or '').splitlines() or ['']:
            for wrapped in textwrap.wrap(raw_line, WRAP_WIDTH) or ['']:
                self.line(wrapped, indent=indent)

    def rule(self):
        self._ensure_room(LINE_HEIGHT + LINE_HEIGHT // 2)
        self.y += LINE_HEIGHT // 2
        self.draw.line((MARGIN, self.y, PAGE_SIZE[0] - MARGIN, self.y), fill='black', width=1)
        self.y += LINE_HEIGHT

    def section(self, title, body):
        if not body:
            return
        # keep the title on the same page as the first body line
        self._ensure_room(2 * LINE_HEIGHT)
        self.line(title.upper())
        self.paragraph(body, indent=12)
        self.y += LINE_HEIGHT // 2


def prescription_filename(bundle):
    return f"prescription-{bundle.prescription.id}.pdf"


def render_prescription_pages(bundle):
    """Draw ``bundle``'s prescription and return the page images in order."""
    prescription = bundle.prescription
    patient = bundle.patient
    clinic = bundle.clinic
    author = bundle.author

    writer = _PageWriter(ImageFont.load_default())

    # Clinic header
    writer.line(clinic.name)
    if clinic.address:
        writer.line(clinic.address)
    if clinic.phone:
        writer.line(f"Tel: {clinic.phone}")
    writer.rule()

    writer.line('PRESCRIPTION')
    writer.line(f"Date: {prescription.created_at:%Y-%m-%d}")
    writer.line(f"Prescriber: {getattr(author, 'display_name', None) or author.email}")
    writer.rule()

    writer.line(f"Patient: {patient.first_name} {patient.last_name}")
    if patient.date_of_birth:
        writer.line(f"Date of birth: {patient.date_of_birth:%Y-%m-%d}")
    writer.rule()

    writer.section('Diagnosis', prescription.diagnosis)
    writer.section('Medications', prescription.medications)
    writer.section('Instructions', prescription.instructions)
    writer.section('Notes', prescription.notes)

    return writer.pages


def render_prescription_pdf(bundle):
    """Return the PDF bytes of ``bundle``'s prescription."""
    first, *rest = render_prescription_pages(bundle)

    buf = io.BytesIO()
    first.save(buf, format='PDF', resolution=float(RESOLUTION), save_all=True, append_images=rest)
    return buf.getvalue()
