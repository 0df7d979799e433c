"""
Bond wizard navigation: qa → summary → purchase → consent → delivery → done.

Run:
    pytest tests/test_wizard_flows.py -q
"""

from datetime import timedelta

import pytest

from src.chatbot.flows.purchase import PurchaseFlow
from src.chatbot.flows.qualification import QualificationFlow, interpret_answer
from src.chatbot.validation import FormValidationError

from conftest import TODAY

EFFECTIVE = (TODAY + timedelta(days=30)).isoformat()
MATCHING_ANSWERS = ["IL", "Chicago", "$50,000", "City of Chicago", EFFECTIVE]
CONTACT = ["Acme Paving LLC", "Jane Doe", "123 Main St, Chicago, IL", "(312) 555-0100", "jane@example.com"]


async def _answer_all(wizard, session_id, answers=MATCHING_ANSWERS):
    result = None
    for value in answers:
        result = await wizard.process({"value": value}, session_id)
    return result


async def _to_consent(wizard, session_id):
    await _answer_all(wizard, session_id)
    await wizard.process({"action": "yes"}, session_id)
    result = None
    for value in CONTACT:
        result = await wizard.process({"action": "next", "value": value}, session_id)
    return result


def test_interpret_answer():
    assert interpret_answer("q1", "tx") == "Texas"
    assert interpret_answer("q3", "$50,000") == "50000"
    assert interpret_answer("q3", "lots") == "lots"
    assert interpret_answer("q2", "Austin") == "Austin"


@pytest.mark.asyncio
async def test_start_renders_first_question(wizard, session_id):
    result = await wizard.start(session_id)
    assert result["flow"] == "qa"
    assert result["step"] == 0
    assert result["response"]["question_id"] == "q1"
    assert result["response"]["progress"] == {"current": 1, "total": 5}


@pytest.mark.asyncio
async def test_answers_are_normalized_and_advance(wizard, session_id, state_manager):
    result = await wizard.process({"value": "il"}, session_id)
    assert result["step"] == 1
    assert result["response"]["question_id"] == "q2"
    await wizard.process("Chicago", session_id)
    await wizard.process({"value": "$50,000"}, session_id)
    answers = state_manager.get_collected_data(session_id)["answers"]
    assert answers == {"q1": "Illinois", "q2": "Chicago", "q3": "50000"}


@pytest.mark.asyncio
async def test_empty_answer_does_not_advance(wizard, session_id, state_manager):
    with pytest.raises(FormValidationError) as exc:
        await wizard.process({"value": "   "}, session_id)
    assert "q1" in exc.value.field_errors
    assert state_manager.get_session(session_id)["current_step"] == 0


@pytest.mark.asyncio
async def test_date_question_exposes_bounds_and_rejects_out_of_window(wizard, session_id, state_manager):
    result = await _answer_all(wizard, session_id, MATCHING_ANSWERS[:4])
    assert result["response"]["question_id"] == "q5"
    assert result["response"]["min"] == TODAY.isoformat()
    assert result["response"]["max"] == (TODAY + timedelta(days=365)).isoformat()

    with pytest.raises(FormValidationError) as exc:
        await wizard.process({"value": (TODAY - timedelta(days=1)).isoformat()}, session_id)
    assert exc.value.message == "Effective date cannot be in the past. Please select today or a future date."

    with pytest.raises(FormValidationError):
        await wizard.process({"value": (TODAY + timedelta(days=366)).isoformat()}, session_id)
    assert state_manager.get_session(session_id)["current_flow"] == "qa"


@pytest.mark.asyncio
async def test_back_prefills_previous_answer(wizard, session_id):
    await wizard.process({"value": "IL"}, session_id)
    await wizard.process({"value": "Chicago"}, session_id)
    result = await wizard.process({"action": "back"}, session_id)
    assert result["step"] == 1
    assert result["response"]["value"] == "Chicago"

    result = await wizard.process({"action": "back"}, session_id)
    assert result["step"] == 0
    assert result["response"]["value"] == "Illinois"

    # no-op on the first question
    result = await wizard.process({"action": "back"}, session_id)
    assert result["step"] == 0


@pytest.mark.asyncio
async def test_reset_clears_answers(wizard, session_id, state_manager):
    await wizard.process({"value": "IL"}, session_id)
    result = await wizard.process({"action": "reset"}, session_id)
    assert result["step"] == 0
    assert state_manager.get_collected_data(session_id)["answers"] == {}


@pytest.mark.asyncio
async def test_matching_answers_show_summary(wizard, session_id):
    result = await _answer_all(wizard, session_id)
    assert result["flow"] == "summary"
    response = result["response"]
    assert response["type"] == "bond_summary"
    details = {d["label"]: d["value"] for d in response["details"]}
    assert details["Name"] == "City of Chicago"
    assert details["Limit"] == "$50,000"
    assert details["Premium"] == "$500"
    assert details["Effective Date"] == EFFECTIVE


@pytest.mark.asyncio
async def test_no_match_shows_inquiry_and_records_it(wizard, session_id, db):
    answers = ["TX", "Dallas", "1000", "Nobody", EFFECTIVE]
    result = await _answer_all(wizard, session_id, answers)
    assert result["flow"] == "summary"
    assert result["response"]["type"] == "inquiry"
    assert result["response"]["message"].startswith("No exact match found.")
    assert result["response"]["answers"]["q1"] == "Texas"

    inquiries = db.list_inquiries()
    assert len(inquiries) == 1
    assert inquiries[0].answers["q2"] == "Dallas"

    with pytest.raises(FormValidationError):
        await wizard.process({"action": "yes"}, session_id)

    result = await wizard.process({"action": "back"}, session_id)
    assert result["flow"] == "qa"


@pytest.mark.asyncio
async def test_lookup_failure_degrades_to_inquiry(state_manager, db, session_id):
    from src.chatbot.modes.guided import GuidedMode

    class BrokenLookup:
        source = "http"

        async def find_exact(self, query):
            raise RuntimeError("service down")

    wizard = GuidedMode(state_manager, BrokenLookup(), db, today=lambda: TODAY)
    result = await _answer_all(wizard, session_id)
    assert result["response"]["type"] == "inquiry"


@pytest.mark.asyncio
async def test_edit_from_summary_jumps_and_prefills(wizard, session_id):
    await _answer_all(wizard, session_id)
    result = await wizard.process({"action": "edit", "step": 2}, session_id)
    assert result["flow"] == "qa"
    assert result["step"] == 2
    assert result["response"]["value"] == "50000"

    # re-answering the last questions returns to the summary
    await wizard.process({"value": "50000"}, session_id)
    await wizard.process({"value": "City of Chicago"}, session_id)
    result = await wizard.process({"value": EFFECTIVE}, session_id)
    assert result["flow"] == "summary"

    result = await wizard.process({"action": "edit", "question_id": "q4"}, session_id)
    assert result["step"] == 3

    await _answer_all(wizard, session_id, ["City of Chicago", EFFECTIVE])
    with pytest.raises(FormValidationError):
        await wizard.process({"action": "edit", "step": 9}, session_id)


@pytest.mark.asyncio
async def test_summary_no_returns_to_questions(wizard, session_id):
    await _answer_all(wizard, session_id)
    result = await wizard.process("no", session_id)
    assert result["flow"] == "qa"
    assert result["step"] == 4
    assert result["response"]["value"] == EFFECTIVE


@pytest.mark.asyncio
async def test_purchase_validation_and_phone_normalization(wizard, session_id, state_manager):
    await _answer_all(wizard, session_id)
    result = await wizard.process({"action": "yes"}, session_id)
    assert result["flow"] == "purchase"
    assert result["response"]["fields"][0]["name"] == "companyName"

    with pytest.raises(FormValidationError) as exc:
        await wizard.process({"action": "next", "value": ""}, session_id)
    assert exc.value.field_errors == {"companyName": "Company Name is required."}

    for value in CONTACT[:3]:
        await wizard.process({"action": "next", "value": value}, session_id)

    with pytest.raises(FormValidationError) as exc:
        await wizard.process({"action": "next", "value": "555"}, session_id)
    assert exc.value.field_errors["contactPhone"] == "Please enter a valid mobile phone number (SMS-capable)."

    await wizard.process({"action": "next", "value": "(312) 555-0100"}, session_id)
    assert state_manager.get_collected_data(session_id)["purchase"]["contactPhone"] == "+13125550100"

    with pytest.raises(FormValidationError) as exc:
        await wizard.process({"action": "next", "value": "jane@"}, session_id)
    assert exc.value.field_errors["contactEmail"] == "Please enter a valid email address."

    result = await wizard.process({"action": "next", "value": "jane@example.com"}, session_id)
    assert result["flow"] == "consent"


@pytest.mark.asyncio
async def test_purchase_back_navigation(wizard, session_id):
    await _answer_all(wizard, session_id)
    await wizard.process({"action": "yes"}, session_id)
    await wizard.process({"action": "next", "value": "Acme Paving LLC"}, session_id)

    result = await wizard.process({"action": "back"}, session_id)
    assert result["step"] == 0
    assert result["response"]["fields"][0]["value"] == "Acme Paving LLC"

    result = await wizard.process({"action": "back"}, session_id)
    assert result["flow"] == "summary"


@pytest.mark.asyncio
async def test_consent_either_answer_goes_to_delivery(wizard, session_id, state_manager):
    result = await _to_consent(wizard, session_id)
    assert result["response"]["type"] == "consent"

    result = await wizard.process({"action": "back"}, session_id)
    assert result["flow"] == "purchase"
    assert result["step"] == 4
    result = await wizard.process({"action": "next"}, session_id)
    assert result["flow"] == "consent"

    result = await wizard.process({"action": "disagree"}, session_id)
    assert result["flow"] == "delivery"
    assert state_manager.get_collected_data(session_id)["consent"] is False


@pytest.mark.asyncio
async def test_delivery_by_text_defaults_to_purchase_phone(wizard, session_id, db):
    await _to_consent(wizard, session_id)
    await wizard.process({"action": "agree"}, session_id)

    result = await wizard.process({"channel": "text"}, session_id)
    assert result["step"] == 1
    assert result["response"]["message"] == "Confirm Mobile Number"
    assert result["response"]["fields"][0]["placeholder"] == "+13125550100"

    result = await wizard.process({"action": "submit", "value": ""}, session_id)
    assert result["flow"] == "done"
    assert result["complete"] is True
    assert result["response"]["text"] == "The secure payment link will be sent via text to +13125550100."

    req = db.get_payment_link_request(result["response"]["payment_link_request_id"])
    assert req.channel == "text"
    assert req.consent is True
    assert req.bond["name"] == "City of Chicago"
    assert req.effective_date == EFFECTIVE


@pytest.mark.asyncio
async def test_delivery_by_email_validates_destination(wizard, session_id):
    await _to_consent(wizard, session_id)
    await wizard.process({"action": "agree"}, session_id)
    await wizard.process("Email", session_id)

    with pytest.raises(FormValidationError) as exc:
        await wizard.process({"action": "submit", "value": "nope"}, session_id)
    assert exc.value.field_errors == {"destination": "Please enter a valid email address."}

    result = await wizard.process({"action": "submit", "value": "billing@acme.com"}, session_id)
    assert result["response"]["text"] == "The secure payment link will be sent via email to billing@acme.com."


@pytest.mark.asyncio
async def test_delivery_back_navigation(wizard, session_id):
    await _to_consent(wizard, session_id)
    await wizard.process({"action": "agree"}, session_id)
    await wizard.process({"channel": "email"}, session_id)

    result = await wizard.process({"action": "back"}, session_id)
    assert result["step"] == 0
    result = await wizard.process({"action": "back"}, session_id)
    assert result["flow"] == "consent"

    await wizard.process({"action": "agree"}, session_id)
    with pytest.raises(FormValidationError):
        await wizard.process("fax", session_id)


@pytest.mark.asyncio
async def test_start_over_resets_everything(wizard, session_id, state_manager):
    await _to_consent(wizard, session_id)
    await wizard.process({"action": "agree"}, session_id)
    await wizard.process({"channel": "email"}, session_id)
    await wizard.process({"action": "submit"}, session_id)

    result = await wizard.process({"action": "start_over"}, session_id)
    assert result["flow"] == "qa"
    assert result["step"] == 0
    data = state_manager.get_collected_data(session_id)
    assert data["answers"] == {}
    assert data["purchase"] == {}
    assert data["match"] is None


@pytest.mark.asyncio
async def test_describe_reports_phase_and_step(wizard, session_id):
    await wizard.process({"value": "IL"}, session_id)
    state = wizard.describe(session_id)
    assert state["current_flow"] == "qa"
    assert state["step_name"] == "q2"
    assert state["steps_total"] == 5
    assert "answers" in state["collected_keys"]


@pytest.mark.asyncio
async def test_flows_can_be_driven_directly():
    flow = QualificationFlow(today=lambda: TODAY)
    result = await flow.process_step({"_raw": "NY"}, 0, {"answers": {}}, "s-1")
    assert result["collected_data"]["answers"]["q1"] == "New York"
    assert result["next_step"] == 1

    purchase = PurchaseFlow()
    result = await purchase.process_step({"contactEmail": "a@b.co"}, 4, {"purchase": {}}, "s-1")
    assert result["next_flow"] == "consent"


@pytest.mark.asyncio
async def test_huge_bond_limit_is_kept_verbatim_and_finds_no_match(wizard, session_id, state_manager):
    huge = "9" * 400
    assert interpret_answer("q3", huge) == huge

    answers = ["IL", "Chicago", huge, "City of Chicago", EFFECTIVE]
    result = await _answer_all(wizard, session_id, answers)
    assert state_manager.get_collected_data(session_id)["answers"]["q3"] == huge
    assert result["flow"] == "summary"
    assert result["response"]["type"] == "inquiry"


@pytest.mark.asyncio
async def test_delivery_channel_is_case_insensitive_and_rejects_odd_shapes(wizard, session_id):
    await _to_consent(wizard, session_id)
    await wizard.process({"action": "agree"}, session_id)

    with pytest.raises(FormValidationError):
        await wizard.process({"channel": ["text"]}, session_id)

    result = await wizard.process({"channel": " Text "}, session_id)
    assert result["step"] == 1
    assert result["response"]["message"] == "Confirm Mobile Number"
