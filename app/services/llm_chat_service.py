import logging
from typing import List, Optional

from openai import AsyncOpenAI, OpenAIError

from app.config import settings
from app.schemas.llm_chat import ChatMessage

# Configure logger for this module
logger = logging.getLogger(__name__)

EMERGENCY_NUMBERS = {
    "Police": "100",
    "Fire": "101",
    "Ambulance": "102",
    "Women Helpline": "1091",
    "Child Helpline": "1098",
}

SYSTEM_PROMPT = """You are an Emergency Response AI Assistant for the SOS app. Your role is to:

1. Provide immediate guidance for emergency situations
2. Offer first aid advice when appropriate
3. Direct users to proper emergency services
4. Give safety tips and preventive measures
5. Help users stay calm during emergencies

IMPORTANT GUIDELINES:
- Always prioritize safety and direct users to call emergency services (100, 101, 102) for serious situations
- Provide clear, concise, and actionable advice
- If someone is in immediate danger, emphasize calling emergency services first
- For medical emergencies, provide basic first aid guidance but always recommend professional medical help

Emergency Services Numbers (India):
""" + "\n".join(f"- {name}: {number}" for name, number in EMERGENCY_NUMBERS.items()) + """

RESPONSE STYLE:
- Use Hinglish (Hindi-English mix), friendly and relatable
- Keep responses short (max 2-3 sentences)
- Use simple words and avoid medical jargon
- Always include relevant emergency numbers"""

GREETING = (
    "Namaste! Main aapka Emergency Response AI Assistant hoon. "
    "Emergency situations mein help karne ke liye yahan hoon. Kya help chahiye aapko?"
)

MAX_HISTORY = 10


def build_gemini_client() -> AsyncOpenAI:
    """Gemini through its OpenAI-compatible endpoint."""
    return AsyncOpenAI(
        base_url=settings.gemini_base_url,
        api_key=settings.gemini_api_key.get_secret_value() or "missing",
    )


def fallback_reply(error: str) -> str:
    numbers = "\n".join(f"- {name}: {number}" for name, number in EMERGENCY_NUMBERS.items())
    return (
        f"I apologize, but I'm experiencing a technical issue: {error}\n\n"
        f"For immediate emergency assistance, please call the appropriate emergency services:\n\n"
        f"Emergency Numbers:\n{numbers}\n\n"
        f"Please try again in a moment, or contact emergency services directly if this is urgent."
    )


class EmergencyAssistant:
    """
    Conversational emergency guidance backed by a chat-completions model.

    The conversation history is kept in memory, capped at the last
    MAX_HISTORY messages. A failed completion never raises; the user gets a
    canned reply listing the emergency numbers instead.
    """

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: Optional[str] = None):
        self.client = client or build_gemini_client()
        self.model = model or settings.gemini_model
        self.history: List[ChatMessage] = []
        self.clear_history()

    def clear_history(self) -> None:
        self.history = [ChatMessage(role="assistant", content=GREETING)]

    async def send_message(self, text: str) -> str:
        logger.info(f"Sending message to assistant ({len(text)} chars)")
        self.history.append(ChatMessage(role="user", content=text))
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "system", "content": SYSTEM_PROMPT}]
                + [{"role": m.role, "content": m.content} for m in self.history],
                max_tokens=500,
                temperature=0.7,
            )
            reply = response.choices[0].message.content or ""
        except (OpenAIError, IndexError, AttributeError) as e:
            logger.error(f"Error communicating with assistant model: {str(e)}")
            self._trim_history()
            return fallback_reply(str(e))

        self.history.append(ChatMessage(role="assistant", content=reply))
        self._trim_history()
        return reply

    async def get_emergency_response(self, emergency_type: str, location: str = "") -> str:
        where = f" in {location}" if location else ""
        return await self.send_message(
            f"Emergency situation: {emergency_type}{where}. Provide immediate guidance and emergency numbers."
        )

    async def get_first_aid_guidance(self, injury: str) -> str:
        return await self.send_message(
            f"Provide first aid guidance for: {injury}. Include immediate steps and when to call emergency services."
        )

    async def test_connection(self) -> bool:
        try:
            await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": "Hello, this is a test message."}],
                max_tokens=5,
            )
            return True
        except OpenAIError as e:
            logger.warning(f"Assistant connection test failed: {str(e)}")
            return False

    def _trim_history(self) -> None:
        if len(self.history) > MAX_HISTORY:
            self.history = self.history[-MAX_HISTORY:]
