from uuid import uuid4

import pytest

from sacdesk.core.exceptions import ValidationError
from sacdesk.models import CustomField, CustomFieldEntity, CustomFieldType, CustomFieldValue
from sacdesk.services.custom_fields import coerce_value, normalize_options, render_field


TICKET = CustomFieldEntity.TICKET
CLIENT = CustomFieldEntity.CLIENT


def test_normalize_options_drops_blank_lines():
    assert normalize_options("Red\n\n  Green  \n   \nBlue") == ["Red", "Green", "Blue"]
    assert normalize_options([" a ", "", "b"]) == ["a", "b"]
    assert normalize_options(None) == []


def test_render_field_dispatches_on_type():
    select = CustomField(name="Channel", field_type=CustomFieldType.SELECT, options=["Phone", "Email"])
    checkbox = CustomField(name="VIP", field_type=CustomFieldType.CHECKBOX, is_required=True)
    number = CustomField(name="Units", field_type=CustomFieldType.NUMBER)
    notes = CustomField(name="Notes", field_type=CustomFieldType.TEXTAREA)

    select_control = render_field(select, "Email")
    assert select_control.widget == "select"
    assert select_control.options == ["Phone", "Email"]
    assert select_control.value == "Email"

    checkbox_control = render_field(checkbox, "true")
    assert checkbox_control.widget == "checkbox"
    assert checkbox_control.checked is True
    assert checkbox_control.required is True
    assert render_field(checkbox, None).value == "false"

    assert render_field(number, "12").input_type == "number"
    assert render_field(notes, None).widget == "textarea"
    assert render_field(notes, None).value == ""


def test_coerce_value_validates_types():
    number = CustomField(name="Units", field_type=CustomFieldType.NUMBER)
    day = CustomField(name="Bought on", field_type=CustomFieldType.DATE)
    select = CustomField(name="Channel", field_type=CustomFieldType.SELECT, options=["Phone"])
    checkbox = CustomField(name="VIP", field_type=CustomFieldType.CHECKBOX)

    assert coerce_value(number, " 3.5 ") == "3.5"
    assert coerce_value(day, "2024-02-29") == "2024-02-29"
    assert coerce_value(checkbox, True) == "true"
    assert coerce_value(checkbox, "False") == "false"
    assert coerce_value(select, "") == ""

    for field, raw in [(number, "three"), (day, "2024-13-01"), (select, "Fax"), (checkbox, "maybe")]:
        with pytest.raises(ValidationError):
            coerce_value(field, raw)


@pytest.mark.asyncio
async def test_define_field_validation(fields):
    with pytest.raises(ValidationError):
        await fields.define_field(TICKET, "  ", CustomFieldType.TEXT)
    with pytest.raises(ValidationError):
        await fields.define_field(TICKET, "Channel", CustomFieldType.SELECT, options="\n  \n")
    with pytest.raises(ValidationError):
        await fields.define_field("invoice", "Total", CustomFieldType.NUMBER)

    field = await fields.define_field(TICKET, "Channel", CustomFieldType.SELECT, options="Phone\n\nEmail")
    assert field.options == ["Phone", "Email"]

    # Options only mean something for select fields
    text = await fields.define_field(TICKET, "Summary", CustomFieldType.TEXT, options=["ignored"])
    assert text.options is None


@pytest.mark.asyncio
async def test_display_order_is_global_across_entity_types(fields):
    a = await fields.define_field(TICKET, "A", CustomFieldType.TEXT)
    c = await fields.define_field(CLIENT, "C", CustomFieldType.TEXT)
    b = await fields.define_field(TICKET, "B", CustomFieldType.TEXT)

    assert (a.display_order, c.display_order, b.display_order) == (0, 1, 2)
    assert [f.name for f in await fields.list_active_fields(TICKET)] == ["A", "B"]


@pytest.mark.asyncio
async def test_reorder_swaps_with_same_entity_neighbour(fields):
    a = await fields.define_field(TICKET, "A", CustomFieldType.TEXT)
    c = await fields.define_field(CLIENT, "C", CustomFieldType.TEXT)
    b = await fields.define_field(TICKET, "B", CustomFieldType.TEXT)

    result = await fields.reorder(b.id, "up")

    assert [f.name for f in result] == ["B", "A"]
    assert (await fields.get_field(c.id)).display_order == 1
    assert (await fields.get_field(b.id)).display_order == 0
    assert (await fields.get_field(a.id)).display_order == 2

    # Already first among ticket fields
    result = await fields.reorder(b.id, "up")
    assert [f.name for f in result] == ["B", "A"]


@pytest.mark.asyncio
async def test_ticket_values_upsert_skips_empty(fields):
    a = await fields.define_field(TICKET, "A", CustomFieldType.TEXT)
    b = await fields.define_field(TICKET, "B", CustomFieldType.TEXT)
    ticket_id = uuid4()
    await fields.save_values(TICKET, ticket_id, {b.id: "y"})

    saved = await fields.save_values(TICKET, ticket_id, {a.id: "x", b.id: ""})

    assert saved == {a.id: "x", b.id: "y"}


@pytest.mark.asyncio
async def test_ticket_values_update_existing_row(fields, gateway):
    a = await fields.define_field(TICKET, "A", CustomFieldType.TEXT)
    ticket_id = uuid4()
    await fields.save_values(TICKET, ticket_id, {a.id: "first"})
    await fields.save_values(TICKET, ticket_id, {a.id: "second"})

    rows = await gateway.select(CustomFieldValue, CustomFieldValue.entity_id == ticket_id)
    assert [row.value for row in rows] == ["second"]


@pytest.mark.asyncio
async def test_client_values_replace_all(fields):
    a = await fields.define_field(CLIENT, "A", CustomFieldType.TEXT)
    c = await fields.define_field(CLIENT, "C", CustomFieldType.TEXT)
    client_id = uuid4()
    await fields.save_values(CLIENT, client_id, {a.id: "old", c.id: "z"})

    saved = await fields.save_values(CLIENT, client_id, {a.id: "x"})

    assert saved == {a.id: "x"}


@pytest.mark.asyncio
async def test_required_fields_are_enforced_on_save(fields):
    required = await fields.define_field(TICKET, "Serial", CustomFieldType.TEXT, required=True)
    optional = await fields.define_field(TICKET, "Notes", CustomFieldType.TEXT)
    ticket_id = uuid4()

    with pytest.raises(ValidationError):
        await fields.save_values(TICKET, ticket_id, {optional.id: "hello"})
    assert await fields.get_values(TICKET, ticket_id) == {}

    await fields.save_values(TICKET, ticket_id, {required.id: "SN-1"})
    # A stored value satisfies the requirement on later upserts
    saved = await fields.save_values(TICKET, ticket_id, {optional.id: "hello"})
    assert saved == {required.id: "SN-1", optional.id: "hello"}


@pytest.mark.asyncio
async def test_unknown_and_inactive_fields_are_rejected(fields):
    client_field = await fields.define_field(CLIENT, "Segment", CustomFieldType.TEXT)
    ticket_field = await fields.define_field(TICKET, "Serial", CustomFieldType.TEXT)
    await fields.set_active(ticket_field.id, False)

    with pytest.raises(ValidationError):
        await fields.save_values(TICKET, uuid4(), {client_field.id: "retail"})
    with pytest.raises(ValidationError):
        await fields.save_values(TICKET, uuid4(), {ticket_field.id: "SN-1"})


@pytest.mark.asyncio
async def test_update_field_revalidates_options(fields):
    field = await fields.define_field(TICKET, "Channel", CustomFieldType.SELECT, options=["Phone"])

    updated = await fields.update_field(field.id, name="Contact channel", options="Phone\nChat")
    assert updated.name == "Contact channel"
    assert updated.options == ["Phone", "Chat"]

    with pytest.raises(ValidationError):
        await fields.update_field(field.id, options=[" "])

    as_text = await fields.update_field(field.id, field_type=CustomFieldType.TEXT)
    assert as_text.options is None


@pytest.mark.asyncio
async def test_delete_field_removes_values_and_compacts(fields, gateway):
    a = await fields.define_field(TICKET, "A", CustomFieldType.TEXT)
    b = await fields.define_field(TICKET, "B", CustomFieldType.TEXT)
    c = await fields.define_field(CLIENT, "C", CustomFieldType.TEXT)
    await fields.save_values(TICKET, uuid4(), {a.id: "x"})

    await fields.delete_field(a.id)

    assert await gateway.count(CustomFieldValue, CustomFieldValue.field_id == a.id) == 0
    remaining = await fields.list_fields()
    assert [(f.name, f.display_order) for f in remaining] == [("B", 0), ("C", 1)]
    assert {b.id, c.id} == {f.id for f in remaining}


@pytest.mark.asyncio
async def test_render_fills_stored_values(fields):
    vip = await fields.define_field(CLIENT, "VIP", CustomFieldType.CHECKBOX)
    segment = await fields.define_field(CLIENT, "Segment", CustomFieldType.SELECT, options=["Retail", "B2B"])
    client_id = uuid4()
    await fields.save_values(CLIENT, client_id, {vip.id: "true", segment.id: "B2B"})

    controls = await fields.render(CLIENT, client_id)

    assert [(c.label, c.value) for c in controls] == [("VIP", "true"), ("Segment", "B2B")]
    assert controls[0].checked is True
