"""Billing agent: insurance, payments, cost estimates and statements."""
import re
from typing import List

from hospital_desk import config
from hospital_desk.agents.base import AgentContext, AgentResponse, BaseAgent, bullet_list


def _mentions(phrases: List[str], text: str) -> bool:
    return any(re.search(rf"\b{re.escape(phrase)}", text) for phrase in phrases)


class BillingAgent(BaseAgent):
    """Answers money questions; complex cases go to human billing staff."""

    name = "BillingAgent"

    INSURANCE_KEYWORDS = [
        "insurance", "coverage", "benefits", "copay", "deductible",
        "out-of-pocket", "network", "provider", "policy",
    ]
    PAYMENT_KEYWORDS = [
        "payment", "pay", "bill", "charge", "payment plan", "installment",
        "credit card", "cash",
    ]
    COST_KEYWORDS = [
        "how much", "cost", "price", "fee", "expensive", "cheap", "affordable", "estimate",
    ]
    STATEMENT_KEYWORDS = [
        "statement", "invoice", "receipt", "explanation", "itemized", "breakdown",
    ]

    def __init__(self, llm=None, breaker=None):
        super().__init__(llm=llm, breaker=breaker)
        self.billing_phone = config.HOSPITAL_INFO["phones"]["billing"]
        self.error_message = (
            "I apologize, but I'm experiencing technical difficulties with billing "
            f"information. Please contact our billing department directly at {self.billing_phone}."
        )
        self.system_prompt = f"""You are a professional hospital billing assistant. Your role is to:

1. Provide information about insurance coverage and benefits
2. Explain billing procedures and payment options
3. Help with payment plan arrangements
4. Clarify medical costs and charges

Be clear about costs, explain insurance terms simply and refer complex cases to
human billing specialists. Never provide personal financial advice.

Insurance providers we accept: {", ".join(config.ACCEPTED_INSURERS)}
Billing department: {self.billing_phone}"""

    def respond(self, message: str, context: AgentContext) -> AgentResponse:
        text = message.lower()

        if _mentions(self.INSURANCE_KEYWORDS, text):
            return self.insurance(message, context)
        # Statement words are more specific than payment words
        if _mentions(self.STATEMENT_KEYWORDS, text):
            return self.statement(message, context)
        if _mentions(self.PAYMENT_KEYWORDS, text):
            return self.payment(message, context)
        if _mentions(self.COST_KEYWORDS, text):
            return self.cost(message, context)

        return self.fallback(message, context, confidence=0.7)

    def insurance(self, message: str, context: AgentContext) -> AgentResponse:
        text = message.lower()

        if "copay" in text or "deductible" in text:
            return AgentResponse(
                content=(
                    "Copays and deductibles vary based on your specific insurance plan:\n\n"
                    "• Copay: Fixed amount you pay for each visit (typically $20-50)\n"
                    "• Deductible: Amount you pay before insurance covers costs\n"
                    "• Coinsurance: Percentage you pay after meeting deductible\n\n"
                    "To get your specific amounts, please provide your insurance information "
                    "or call our billing department."
                ),
                confidence=0.8,
            )

        if "network" in text:
            return AgentResponse(
                content=(
                    "We are in-network with most major insurance providers. Being in-network "
                    "means lower out-of-pocket costs and predictable copays.\n\n"
                    "To verify your specific benefits, please provide your insurance "
                    f"information or call {self.billing_phone}."
                ),
                confidence=0.8,
            )

        return AgentResponse(
            content=(
                "We accept most major insurance providers including:\n\n"
                f"{bullet_list(config.ACCEPTED_INSURERS + ['Most major PPO and HMO plans'])}\n\n"
                "Please bring your insurance card and photo ID to your appointment. We'll "
                "verify your benefits before your visit."
            ),
            confidence=0.9,
        )

    def payment(self, message: str, context: AgentContext) -> AgentResponse:
        text = message.lower()

        if "payment plan" in text or "installment" in text:
            return AgentResponse(
                content=(
                    "We offer flexible payment plans to help manage your medical expenses:\n\n"
                    "• 0% interest payment plans\n"
                    "• Monthly installments available\n"
                    "• Automatic payment options\n"
                    "• Financial hardship assistance\n\n"
                    f"To set up a payment plan, please contact our billing department at {self.billing_phone}."
                ),
                confidence=0.9,
            )

        if "credit card" in text or "cash" in text:
            return AgentResponse(
                content=(
                    "We accept multiple payment methods:\n\n"
                    "• Credit/Debit cards (Visa, MasterCard, American Express, Discover)\n"
                    "• Cash payments\n"
                    "• Personal checks\n"
                    "• Health Savings Account (HSA) and Flexible Spending Account (FSA) cards\n\n"
                    "Payment is typically due at the time of service unless you have insurance coverage."
                ),
                confidence=0.9,
            )

        if "financial assistance" in text or "help" in text:
            return AgentResponse(
                content=(
                    "We offer financial assistance programs for qualifying patients:\n\n"
                    "• Income-based discounts\n"
                    "• Charity care programs\n"
                    "• Sliding scale fees\n\n"
                    "To apply, please contact our financial services office."
                ),
                confidence=0.8,
            )

        return self.fallback(message, context, confidence=0.7)

    def cost(self, message: str, context: AgentContext) -> AgentResponse:
        text = message.lower()

        if "estimate" in text or "quote" in text:
            return AgentResponse(
                content=(
                    "To provide an accurate cost estimate, I need:\n\n"
                    "1. Your insurance information\n"
                    "2. Type of service needed\n"
                    "3. Any specific procedures\n\n"
                    f"Please provide this information or call our billing department at {self.billing_phone}."
                ),
                confidence=0.8,
            )

        costs = [f"{service}: {amount}" for service, amount in config.TYPICAL_COSTS.items()]
        return AgentResponse(
            content=(
                f"Our typical costs (before insurance) are:\n\n{bullet_list(costs)}\n\n"
                "Actual costs depend on your insurance coverage."
            ),
            confidence=0.8,
        )

    def statement(self, message: str, context: AgentContext) -> AgentResponse:
        text = message.lower()

        if "dispute" in text or "wrong" in text or "error" in text:
            return AgentResponse(
                content=(
                    "If you believe there's an error on your bill, we're here to help:\n\n"
                    f"• Contact our billing department at {self.billing_phone}\n"
                    "• Provide your account number and specific concerns\n"
                    "• We'll review your account within 5-7 business days\n"
                    "• You can also request an itemized statement"
                ),
                confidence=0.8,
            )

        return AgentResponse(
            content=(
                "I can help explain your billing statement. Common items include:\n\n"
                "• Professional fees (doctor's time)\n"
                "• Facility fees (use of hospital/clinic)\n"
                "• Lab tests and procedures\n"
                "• Medications and supplies\n\n"
                "For a detailed explanation of your specific charges, please provide your "
                "account number or call our billing department."
            ),
            confidence=0.8,
        )
