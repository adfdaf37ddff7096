from io import StringIO

import pytest
from django.core.management import call_command

from src.auditaction.models import AuditAction, AuditLog
from src.cards.models import CardForm


@pytest.mark.django_db
def test_seed_registers_canonical_forms_once():
    call_command("cards_seed_forms", stdout=StringIO())

    forms = CardForm.objects.filter(status=CardForm.Status.REGISTERED)
    assert sorted(forms.values_list("form_type", flat=True)) == ["data", "entity", "use"]
    assert set(
        AuditLog.objects.filter(action=AuditAction.FORM_REGISTERED).values_list("actor", flat=True)
    ) == {None}

    out = StringIO()
    call_command("cards_seed_forms", stdout=out)
    assert CardForm.objects.count() == 3
    assert "0 form(s) registered" in out.getvalue()


@pytest.mark.django_db
def test_seed_dry_run_writes_nothing():
    out = StringIO()
    call_command("cards_seed_forms", "--dry-run", stdout=out)

    assert CardForm.objects.count() == 0
    assert "would register" in out.getvalue()
