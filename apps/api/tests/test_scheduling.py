"""
Tests for appointment conflict detection and the scheduler.

Intervals are half-open: [start, start + duration). Cancelled and no-show
appointments release their slot.
"""
from datetime import timedelta
from unittest.mock import patch

import pytest
from django.core.exceptions import ValidationError
from django.db import transaction

from apps.clinical.models import Appointment
from apps.clinical.scheduling import AppointmentScheduler, ConflictChecker, ConflictScope
from apps.core.exceptions import InvalidTransition, SlotConflict
from tests.helpers import at


@pytest.mark.django_db
class TestConflictChecker:
    """Existing appointment 10:00-10:30 in Clinic A."""

    @pytest.fixture(autouse=True)
    def _existing(self, appointment_factory, doctor_user):
        self.existing = appointment_factory(scheduled_start=at(10), assigned_user=doctor_user)

    @pytest.mark.parametrize('start,duration,expected', [
        (at(10), 30, True),            # identical
        (at(10, 15), 30, True),        # overlaps the end
        (at(9, 45), 30, True),         # overlaps the start
        (at(9, 30), 120, True),        # contains
        (at(10, 10), 5, True),         # contained
        (at(10, 30), 30, False),       # back-to-back after
        (at(9, 30), 30, False),        # back-to-back before
        (at(11), 30, False),           # disjoint
        (at(10, 29), 1, True),         # last minute
    ])
    def test_clinic_scope(self, clinic, start, duration, expected):
        assert ConflictChecker().has_conflict(clinic.id, start, duration) is expected

    def test_other_clinic_never_conflicts(self, other_clinic):
        assert ConflictChecker().has_conflict(other_clinic.id, at(10), 30) is False

    def test_exclude_self(self, clinic):
        assert ConflictChecker().has_conflict(
            clinic.id, at(10, 15), 30, exclude_appointment_id=self.existing.id
        ) is False

    @pytest.mark.parametrize('released', ['cancelled', 'no_show'])
    def test_released_statuses_free_the_slot(self, clinic, released):
        self.existing.status = released
        self.existing.save()

        assert ConflictChecker().has_conflict(clinic.id, at(10), 30) is False

    @pytest.mark.parametrize('holding', ['scheduled', 'confirmed', 'in_progress', 'completed'])
    def test_holding_statuses_keep_the_slot(self, clinic, holding):
        self.existing.status = holding
        self.existing.save()

        assert ConflictChecker().has_conflict(clinic.id, at(10), 30) is True

    def test_practitioner_scope(self, clinic, doctor_user, other_doctor_user):
        checker = ConflictChecker()

        assert checker.has_conflict(
            clinic.id, at(10), 30, practitioner_id=doctor_user.id, scope=ConflictScope.PRACTITIONER
        ) is True
        assert checker.has_conflict(
            clinic.id, at(10), 30, practitioner_id=other_doctor_user.id, scope=ConflictScope.PRACTITIONER
        ) is False

    def test_practitioner_scope_requires_practitioner(self, clinic):
        with pytest.raises(ValueError):
            ConflictChecker().has_conflict(clinic.id, at(10), 30, scope=ConflictScope.PRACTITIONER)

    @pytest.mark.parametrize('duration', [0, -5, None])
    def test_invalid_duration(self, clinic, duration):
        with pytest.raises(ValidationError):
            ConflictChecker().has_conflict(clinic.id, at(12), duration)

    def test_read_only(self, clinic):
        ConflictChecker().has_conflict(clinic.id, at(10), 30)

        assert Appointment.objects.count() == 1


@pytest.mark.django_db
class TestSchedulerBook:

    def test_book_copies_service_duration(self, clinic, patient, long_service):
        appointment = AppointmentScheduler().book(clinic.id, patient, long_service, at(9))

        assert appointment.status == 'scheduled'
        assert appointment.duration_minutes == 60
        assert appointment.scheduled_end == at(10)

    def test_duration_frozen_after_service_change(self, clinic, patient, service):
        appointment = AppointmentScheduler().book(clinic.id, patient, service, at(9))
        service.duration_minutes = 90
        service.save()

        appointment.refresh_from_db()
        assert appointment.duration_minutes == 30

    def test_conflict_persists_nothing(self, clinic, patient, service):
        scheduler = AppointmentScheduler()
        scheduler.book(clinic.id, patient, service, at(9))

        with pytest.raises(SlotConflict):
            scheduler.book(clinic.id, patient, service, at(9, 15))

        assert Appointment.objects.count() == 1

    def test_back_to_back(self, clinic, patient, service):
        scheduler = AppointmentScheduler()
        scheduler.book(clinic.id, patient, service, at(9))
        scheduler.book(clinic.id, patient, service, at(9, 30))

        assert Appointment.objects.count() == 2

    def test_practitioner_scope_allows_parallel_doctors(
        self, clinic, patient, service, doctor_user, other_doctor_user
    ):
        scheduler = AppointmentScheduler()
        scheduler.book(clinic.id, patient, service, at(9),
                       assigned_user_id=doctor_user.id, scope=ConflictScope.PRACTITIONER)
        scheduler.book(clinic.id, patient, service, at(9),
                       assigned_user_id=other_doctor_user.id, scope=ConflictScope.PRACTITIONER)

        with pytest.raises(SlotConflict):
            scheduler.book(clinic.id, patient, service, at(9, 10),
                           assigned_user_id=doctor_user.id, scope=ConflictScope.PRACTITIONER)

    def test_clinic_scope_blocks_parallel_doctors(
        self, clinic, patient, service, doctor_user, other_doctor_user
    ):
        scheduler = AppointmentScheduler()
        scheduler.book(clinic.id, patient, service, at(9), assigned_user_id=doctor_user.id)

        with pytest.raises(SlotConflict):
            scheduler.book(clinic.id, patient, service, at(9), assigned_user_id=other_doctor_user.id)


@pytest.mark.django_db
class TestSchedulerReschedule:

    def test_reschedule_keeps_duration(self, clinic, patient, long_service):
        scheduler = AppointmentScheduler()
        appointment = scheduler.book(clinic.id, patient, long_service, at(9))

        moved = scheduler.reschedule(appointment, at(14))

        assert moved.scheduled_start == at(14)
        assert moved.scheduled_end == at(15)
        assert moved.duration_minutes == 60

    def test_reschedule_overlapping_itself(self, clinic, patient, long_service):
        scheduler = AppointmentScheduler()
        appointment = scheduler.book(clinic.id, patient, long_service, at(9))

        moved = scheduler.reschedule(appointment, at(9, 30))

        assert moved.scheduled_start == at(9, 30)

    def test_reschedule_conflict(self, clinic, patient, service):
        scheduler = AppointmentScheduler()
        scheduler.book(clinic.id, patient, service, at(9))
        second = scheduler.book(clinic.id, patient, service, at(11))

        with pytest.raises(SlotConflict):
            scheduler.reschedule(second, at(9, 15))

        second.refresh_from_db()
        assert second.scheduled_start == at(11)

    @pytest.mark.parametrize('terminal', ['completed', 'cancelled', 'no_show'])
    def test_terminal_cannot_move(self, appointment_factory, terminal):
        appointment = appointment_factory(status=terminal)

        with pytest.raises(ValidationError):
            AppointmentScheduler().reschedule(appointment, at(15))


class RecordingChecker(ConflictChecker):
    """Notes each check together with whether a transaction is open."""

    def __init__(self, calls):
        super().__init__()
        self.calls = calls

    def has_conflict(self, *args, **kwargs):
        self.calls.append(('check', transaction.get_connection().in_atomic_block, Appointment.objects.count()))
        return super().has_conflict(*args, **kwargs)


@pytest.mark.django_db(transaction=True)
class TestSchedulerLocking:
    """The clinic row is locked before the check, in the same transaction as the write."""

    @pytest.fixture
    def calls(self):
        return []

    @pytest.fixture
    def scheduler(self, calls):
        lock_clinic = AppointmentScheduler._lock_clinic

        def recording_lock(scheduler, clinic_id):
            calls.append(('lock', transaction.get_connection().in_atomic_block, Appointment.objects.count()))
            return lock_clinic(scheduler, clinic_id)

        with patch.object(AppointmentScheduler, '_lock_clinic', autospec=True, side_effect=recording_lock):
            yield AppointmentScheduler(checker=RecordingChecker(calls))

    def test_book_locks_then_checks_then_inserts(self, scheduler, calls, clinic, patient, service):
        scheduler.book(clinic.id, patient, service, at(9))

        assert calls == [('lock', True, 0), ('check', True, 0)]
        assert Appointment.objects.count() == 1

    def test_reschedule_locks_before_checking(self, scheduler, calls, clinic, patient, service):
        appointment = scheduler.book(clinic.id, patient, service, at(9))
        calls.clear()

        scheduler.reschedule(appointment, at(14))

        assert [(step, in_transaction) for step, in_transaction, _ in calls] == [('lock', True), ('check', True)]

    def test_rejected_booking_rolls_back(self, scheduler, calls, clinic, patient, service):
        scheduler.book(clinic.id, patient, service, at(9))
        calls.clear()

        with pytest.raises(SlotConflict):
            scheduler.book(clinic.id, patient, service, at(9, 15))

        assert [step for step, _, _ in calls] == ['lock', 'check']
        assert not transaction.get_connection().in_atomic_block
        assert Appointment.objects.count() == 1


@pytest.mark.django_db
class TestSchedulerTransition:

    @pytest.mark.parametrize('path', [
        ['confirmed', 'in_progress', 'completed'],
        ['confirmed', 'no_show'],
        ['cancelled'],
    ])
    def test_allowed_paths(self, appointment, path):
        scheduler = AppointmentScheduler()
        for new_status in path:
            appointment = scheduler.transition(appointment, new_status)

        appointment.refresh_from_db()
        assert appointment.status == path[-1]

    @pytest.mark.parametrize('start,target', [
        ('scheduled', 'completed'),
        ('scheduled', 'in_progress'),
        ('scheduled', 'no_show'),
        ('confirmed', 'scheduled'),
        ('confirmed', 'cancelled'),
        ('in_progress', 'cancelled'),
        ('completed', 'scheduled'),
        ('cancelled', 'confirmed'),
        ('no_show', 'confirmed'),
    ])
    def test_rejected(self, appointment_factory, start, target):
        appointment = appointment_factory(status=start)

        with pytest.raises(InvalidTransition):
            AppointmentScheduler().transition(appointment, target)

        appointment.refresh_from_db()
        assert appointment.status == start

    def test_cancellation_reason_kept(self, appointment):
        appointment = AppointmentScheduler().transition(appointment, 'cancelled', reason='Patient sick')

        assert appointment.cancellation_reason == 'Patient sick'

    def test_cancel_frees_slot(self, clinic, patient, service):
        scheduler = AppointmentScheduler()
        first = scheduler.book(clinic.id, patient, service, at(9))
        scheduler.transition(first, 'cancelled')

        second = scheduler.book(clinic.id, patient, service, at(9))

        assert second.pk != first.pk

    def test_allowed_transitions_table(self):
        assert Appointment.allowed_transitions('scheduled') == ['confirmed', 'cancelled']
        assert Appointment.allowed_transitions('completed') == []
        assert Appointment.allowed_transitions('bogus') == []

    def test_duration_helper(self):
        assert Appointment.compute_end(at(23, 45), 30) == at(0, 15, days=1)
        assert at(0, 15, days=1) - at(23, 45) == timedelta(minutes=30)
