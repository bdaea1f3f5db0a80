"""
Tests for prescription PDF rendering.
"""
import re
from datetime import date
from types import SimpleNamespace
from unittest.mock import patch

from PIL import ImageDraw

from apps.documents.rendering import (
    LINE_HEIGHT,
    MARGIN,
    PAGE_SIZE,
    PrescriptionBundle,
    prescription_filename,
    render_prescription_pages,
    render_prescription_pdf,
)
from tests.helpers import at


def make_bundle(medications='Cetirizine 10mg, once daily', **extra):
    prescription = SimpleNamespace(
        id='rx-1',
        created_at=at(9),
        diagnosis='Seasonal allergy',
        medications=medications,
        instructions=extra.get('instructions', 'Take with water'),
        notes=extra.get('notes', ''),
    )
    return PrescriptionBundle(
        prescription=prescription,
        patient=SimpleNamespace(first_name='John', last_name='Doe', date_of_birth=date(1980, 5, 1)),
        clinic=SimpleNamespace(name='Clinic A', address='1 Main St', phone='+33100000000'),
        author=SimpleNamespace(display_name='Dana Doctor', email='doctor@clinic-a.test'),
    )


def long_medication_list(count=80):
    return '\n'.join(f"Drug {n} 10mg twice daily" for n in range(1, count + 1))


class TestPrescriptionRendering:

    def test_short_prescription_fits_one_page(self):
        pages = render_prescription_pages(make_bundle())

        assert len(pages) == 1
        assert pages[0].size == PAGE_SIZE

    def test_pdf_bytes(self):
        content = render_prescription_pdf(make_bundle())

        assert content.startswith(b'%PDF')

    def test_filename(self):
        assert prescription_filename(make_bundle()) == 'prescription-rx-1.pdf'

    def test_long_medication_list_spills_onto_more_pages(self):
        pages = render_prescription_pages(make_bundle(medications=long_medication_list()))

        assert len(pages) > 1
        assert all(page.size == PAGE_SIZE for page in pages)

    def test_every_line_is_drawn_inside_the_page(self):
        with patch.object(ImageDraw.ImageDraw, 'text', autospec=True) as draw_text:
            render_prescription_pages(make_bundle(medications=long_medication_list()))

        drawn = [call.args[2] for call in draw_text.call_args_list]
        positions = [call.args[1][1] for call in draw_text.call_args_list]
        assert 'Drug 80 10mg twice daily' in drawn
        assert 'Take with water' in drawn
        assert all(MARGIN <= y <= PAGE_SIZE[1] - MARGIN - LINE_HEIGHT for y in positions)

    def test_pdf_holds_every_page(self):
        pages = render_prescription_pages(make_bundle(medications=long_medication_list()))

        content = render_prescription_pdf(make_bundle(medications=long_medication_list()))

        count = re.search(rb'/Count (\d+)', content)
        assert count is not None
        assert int(count.group(1)) == len(pages)
