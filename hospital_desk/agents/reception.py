"""Reception agent: appointments, doctor availability, FAQs, billing basics."""
import re
from datetime import date
from typing import List, Optional

from hospital_desk import config
from hospital_desk.agents.base import AgentContext, AgentResponse, BaseAgent, bullet_list
from hospital_desk.availability import AvailabilityEngine, format_time_12h, format_weekly_schedule
from hospital_desk.domain import Doctor, normalize_time
from hospital_desk.errors import NotFoundError, StoreError
from hospital_desk.intent import DoctorReferenceExtractor, mentioned_department
from hospital_desk.logging_config import get_logger
from hospital_desk.repository import HospitalRepository

logger = get_logger(__name__)

DATE_IN_TEXT = re.compile(r"\b(\d{4}-\d{2}-\d{2})\b")
TIME_IN_TEXT = re.compile(r"\b([01]?\d|2[0-3]):([0-5]\d)\b")

DATABASE_TROUBLE = (
    "I'm having trouble accessing the doctor database right now. "
    "Please try again or contact our staff directly."
)


def _matches(patterns: List[str], text: str) -> bool:
    return any(re.search(pattern, text) for pattern in patterns)


class ReceptionAgent(BaseAgent):
    """Front desk assistant; answers from hospital data before asking the LLM."""

    name = "ReceptionAgent"

    GREETING_PATTERNS = [
        r"\b(hi|hello|hey|greetings)\b",
        r"\bgood\s+(morning|afternoon|evening)\b",
    ]
    AVAILABILITY_PATTERNS = [
        r"\bdoctors?\s+available\b",
        r"\bavailable\s+doctors?\b",
        r"\bavailability\b",
        r"\bworking\s+hours\b",
        r"\bnext\s+available\b",
        r"\bopen\s+slots\b",
        r"\b(which|what)\s+doctors?\b",
        r"\b(his|her|their)\s+available\b",
    ]
    APPOINTMENT_PATTERNS = [
        r"\bappointments?\b",
        r"\bbook(ing)?\b",
        r"\bschedule\b",
        r"\breschedule\b",
        r"\bcancel\b",
        r"\bchange\b",
        r"\bslots?\b",
        r"\breservation\b",
    ]
    FAQ_PATTERNS = [
        r"\bvisiting\s+hours\b",
        r"\bhours\b",
        r"\bopen\b",
        r"\bclose\b",
        r"\blocation\b",
        r"\baddress\b",
        r"\bphone\b",
        r"\bcontact\b",
        r"\bparking\b",
        r"\bvisitors?\b",
        r"\bpolicy\b",
    ]
    BILLING_PATTERNS = [
        r"\bbill\b",
        r"\bpayment\b",
        r"\bcost\b",
        r"\bprice\b",
        r"\binsurance\b",
        r"\bcoverage\b",
        r"\bcopay\b",
        r"\bdeductible\b",
    ]

    def __init__(
        self,
        repository: HospitalRepository,
        engine: AvailabilityEngine,
        llm=None,
        breaker=None,
    ):
        super().__init__(llm=llm, breaker=breaker)
        self.repository = repository
        self.engine = engine
        self.doctor_extractor = DoctorReferenceExtractor()
        self.system_prompt = self._build_system_prompt()

    def _build_system_prompt(self) -> str:
        hours = config.HOSPITAL_INFO["visiting_hours"]
        return f"""You are a professional hospital reception assistant. Your role is to:

1. Help patients book, reschedule, or cancel appointments
2. Provide information about visiting hours, insurance, and billing
3. Answer general questions about hospital services
4. Direct patients to appropriate departments
5. If the query is unrelated to hospital services, politely say: "I can only help with hospital-related questions."

Guidelines:
- Be polite, professional and empathetic
- Never provide medical advice or diagnosis
- For emergencies, immediately escalate to human staff
- Only give doctor information that comes from hospital records; never invent doctors

Available departments: {", ".join(config.DEPARTMENTS)}
Visiting hours: {hours["weekdays"]} on weekdays, {hours["weekends"]} on weekends
Emergency services: {hours["emergency"]}"""

    def respond(self, message: str, context: AgentContext) -> AgentResponse:
        text = message.lower()

        if self._is_availability_query(text):
            return self.handle_doctor_availability(message, context)
        if _matches(self.APPOINTMENT_PATTERNS, text):
            return self.handle_appointment(message, context)
        if _matches(self.FAQ_PATTERNS, text):
            return self.handle_faq(message, context)
        if _matches(self.BILLING_PATTERNS, text):
            return self.handle_billing(message, context)
        if _matches(self.GREETING_PATTERNS, text):
            return AgentResponse(
                content=(
                    "Hello! I'm here to assist you with hospital services, appointments, "
                    "or any questions you have. Just let me know how I can help!"
                ),
                confidence=0.9,
            )
        if context.metadata.get("handoffFrom"):
            return self.booking_guidance(hand_off=False)

        return AgentResponse(
            content=(
                "I'm not sure what you mean. Could you please provide more details or ask "
                "about appointments, doctors, visiting hours, or billing?"
            ),
            confidence=0.5,
        )

    def _is_availability_query(self, text: str) -> bool:
        if self.doctor_extractor.extract(text):
            return True
        return _matches(self.AVAILABILITY_PATTERNS, text)

    # ==================== APPOINTMENTS ====================

    def booking_guidance(self, hand_off: bool = True) -> AgentResponse:
        return AgentResponse(
            content=(
                "I'd be happy to help you book an appointment. To get started, I'll need "
                "some information:\n\n"
                "1. What type of appointment do you need? (consultation, follow-up, routine check-up, etc.)\n"
                "2. Do you have a preferred doctor or department?\n"
                "3. What's your preferred date and time?\n"
                "4. What's the reason for your visit?\n\n"
                "Please provide these details so I can assist you better."
            ),
            confidence=0.9,
            # Symptom assessment happens before booking
            next_agent="NurseAgent" if hand_off else None,
        )

    def handle_appointment(self, message: str, context: AgentContext) -> AgentResponse:
        text = message.lower()

        if re.search(r"\b(reschedule|change)\b", text):
            return AgentResponse(
                content=(
                    "I can help you reschedule your appointment. Please provide:\n\n"
                    "1. Your current appointment ID or date/time\n"
                    "2. Your preferred new date and time\n"
                    "3. The reason for rescheduling\n\n"
                    "I'll check availability and make the changes for you."
                ),
                confidence=0.9,
            )

        if re.search(r"\bcancel\b", text):
            return AgentResponse(
                content=(
                    "I understand you need to cancel your appointment. Please provide:\n\n"
                    "1. Your appointment ID or date/time\n"
                    "2. The reason for cancellation\n\n"
                    "I'll process the cancellation for you. Please note that we have a "
                    "24-hour cancellation policy."
                ),
                confidence=0.9,
            )

        if re.search(r"\b(book|schedule)\b", text):
            return self.booking_guidance(hand_off=not context.metadata.get("handoffFrom"))

        return self.fallback(message, context)

    # ==================== DOCTOR AVAILABILITY ====================

    def _doctor_reference(self, message: str, context: AgentContext) -> Optional[tuple]:
        reference = self.doctor_extractor.extract(message)
        if reference:
            return reference

        # "What is his availability?" refers to the doctor named just before
        if re.search(r"\b(his|her|their)\b", message.lower()):
            for turn in reversed(context.previous_messages[-2:]):
                reference = self.doctor_extractor.extract(turn.content)
                if reference:
                    return reference
        return None

    def handle_doctor_availability(self, message: str, context: AgentContext) -> AgentResponse:
        try:
            reference = self._doctor_reference(message, context)
            if reference:
                return self._availability_for_doctor(message, *reference)

            department = mentioned_department(message, config.DEPARTMENTS)
            if department:
                return self._doctors_in_department(department)

            return self._all_doctors()
        except StoreError:
            logger.error("doctor_lookup_failed", session_id=context.session_id)
            return AgentResponse(content=DATABASE_TROUBLE, confidence=0.3)

    def _availability_for_doctor(
        self,
        message: str,
        first_name: str,
        last_name: Optional[str],
    ) -> AgentResponse:
        doctor = self.repository.find_active_doctor_by_name(first_name, last_name)
        if not doctor:
            requested = " ".join(part for part in (first_name, last_name) if part)
            return AgentResponse(
                content=(
                    f'I couldn\'t find a doctor named "{requested}" in our records. Please '
                    "provide the full name or check the spelling, or ask for availability "
                    "by department."
                ),
                confidence=0.7,
            )

        requested_slot = self._requested_slot(message)
        if requested_slot:
            return self._check_specific_time(doctor, *requested_slot)

        schedule = format_weekly_schedule(doctor)
        if not schedule:
            return AgentResponse(
                content=(
                    f"Dr. {doctor.full_name} has no available time slots at the moment. "
                    "Would you like to check another doctor or contact our reception desk?"
                ),
                confidence=0.9,
            )

        return AgentResponse(
            content=(
                f"Dr. {doctor.full_name} ({doctor.specialization}, {doctor.department}) "
                f"is available at the following times:\n\n{schedule}\n\n"
                "Would you like to book an appointment?"
            ),
            confidence=0.9,
            metadata={"doctorId": doctor.doctor_id},
        )

    def _requested_slot(self, message: str) -> Optional[tuple]:
        date_match = DATE_IN_TEXT.search(message)
        time_match = TIME_IN_TEXT.search(message)
        if not (date_match and time_match):
            return None
        try:
            return date.fromisoformat(date_match.group(1)), normalize_time(time_match.group(0))
        except ValueError:
            return None

    def _check_specific_time(self, doctor: Doctor, appointment_date: date, start_time: str) -> AgentResponse:
        try:
            result = self.engine.check_availability(doctor.doctor_id, appointment_date, start_time)
        except NotFoundError:
            return AgentResponse(
                content=f"Dr. {doctor.full_name} is not currently taking appointments.",
                confidence=0.8,
            )

        when = f"{appointment_date.strftime('%A, %B %d, %Y')} at {format_time_12h(start_time)}"
        if result.available:
            return AgentResponse(
                content=(
                    f"Good news! Dr. {doctor.full_name} is available on {when}. "
                    "Would you like me to book it?"
                ),
                confidence=0.95,
                metadata={"doctorId": doctor.doctor_id, "available": True},
            )

        if result.available_slots:
            alternatives = "\n".join(
                f"- {slot.start_time} - {slot.end_time}" for slot in result.available_slots
            )
            content = (
                f"Dr. {doctor.full_name} is not available on {when} "
                f"({result.message.lower()}). Hours that day:\n\n{alternatives}"
            )
        else:
            content = f"Dr. {doctor.full_name} does not see patients on that day."

        return AgentResponse(
            content=content,
            confidence=0.9,
            metadata={"doctorId": doctor.doctor_id, "available": False},
        )

    def _doctors_in_department(self, department: str) -> AgentResponse:
        doctors = self.repository.list_doctors(department=department, is_active=True)
        if not doctors:
            return AgentResponse(
                content=(
                    f"I don't see any available doctors in the {department} department at "
                    "the moment. Would you like to check another department or contact our "
                    "reception desk for assistance?"
                ),
                confidence=0.7,
            )

        listing = "\n".join(
            f"- Dr. {doctor.full_name} ({doctor.specialization}) - "
            f"{doctor.experience} years experience"
            for doctor in doctors
        )
        return AgentResponse(
            content=(
                f"Here are the available doctors in {department}:\n\n{listing}\n\n"
                "Would you like to book an appointment with any of these doctors?"
            ),
            confidence=0.9,
        )

    def _all_doctors(self) -> AgentResponse:
        doctors = sorted(
            self.repository.list_doctors(is_active=True),
            key=lambda doctor: (doctor.department, doctor.first_name),
        )
        if not doctors:
            return AgentResponse(
                content=(
                    "I couldn't find any available doctors at the moment. Please specify a "
                    "doctor's name or department, or contact our staff directly."
                ),
                confidence=0.3,
            )

        listing = "\n".join(
            f"- Dr. {doctor.full_name} ({doctor.department}) - "
            f"{doctor.experience} years experience"
            for doctor in doctors
        )
        return AgentResponse(
            content=(
                f"Here are all our available doctors:\n\n{listing}\n\n"
                "Please specify a doctor's name or department to check their availability."
            ),
            confidence=0.8,
        )

    # ==================== FAQ / BILLING ====================

    def handle_faq(self, message: str, context: AgentContext) -> AgentResponse:
        text = message.lower()
        info = config.HOSPITAL_INFO

        if re.search(r"\bhours\b", text):
            hours = info["visiting_hours"]
            return AgentResponse(
                content=(
                    "Our visiting hours are:\n\n"
                    f"• Monday - Friday: {hours['weekdays']}\n"
                    f"• Saturday - Sunday: {hours['weekends']}\n"
                    f"• Emergency Department: {hours['emergency']}\n\n"
                    "Please note that some departments may have specific visiting hours."
                ),
                confidence=1.0,
            )

        if re.search(r"\b(location|address)\b", text):
            return AgentResponse(
                content=(
                    f"We are located at:\n\n{info['address']}\n\n"
                    "Parking is available in our main lot, and we're easily accessible by "
                    "public transportation."
                ),
                confidence=1.0,
            )

        if re.search(r"\b(phone|contact)\b", text):
            phones = info["phones"]
            return AgentResponse(
                content=(
                    "You can reach us at:\n\n"
                    f"• Main Reception: {phones['reception']}\n"
                    f"• Emergency: {phones['emergency']}\n"
                    f"• Appointment Line: {phones['appointments']}\n"
                    f"• Billing: {phones['billing']}\n\n"
                    "For emergencies, call 911 or our emergency line."
                ),
                confidence=1.0,
            )

        return self.fallback(message, context)

    def handle_billing(self, message: str, context: AgentContext) -> AgentResponse:
        text = message.lower()

        if "insurance" in text:
            return AgentResponse(
                content=(
                    "We accept most major insurance providers including:\n\n"
                    f"{bullet_list(config.ACCEPTED_INSURERS)}\n\n"
                    "Please bring your insurance card and ID to your appointment. For specific "
                    f"coverage questions, contact our billing department at "
                    f"{config.HOSPITAL_INFO['phones']['billing']}."
                ),
                confidence=0.9,
            )

        if re.search(r"\b(cost|price)\b", text):
            costs = [f"{service}: {amount}" for service, amount in config.TYPICAL_COSTS.items()]
            return AgentResponse(
                content=(
                    "Our costs vary based on the type of service and your insurance coverage. "
                    f"Typical costs include:\n\n{bullet_list(costs)}\n\n"
                    "For an accurate estimate, please provide your insurance information or "
                    "contact our billing department."
                ),
                confidence=0.8,
            )

        return self.fallback(message, context)
