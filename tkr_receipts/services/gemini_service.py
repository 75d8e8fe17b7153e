"""Gemini API client for scope extraction, quotation drafting and chat."""

import base64
import json
import re
from datetime import date
from pathlib import Path
from typing import Any, Optional

import aiofiles
import httpx
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from tkr_receipts.config.settings import CompanyDetails, GeminiConfig, settings
from tkr_receipts.models.quotation import (
    GRAND_TOTAL_PLACEHOLDER,
    SUBTOTAL_PLACEHOLDER,
    TAX_PLACEHOLDER,
    ClientInfo,
    CompanyInfo,
    QuotationStructure,
    ScopeItem,
)
from tkr_receipts.services.prompts import (
    SCOPE_EXTRACTION_PROMPT,
    chat_system_instruction,
    quotation_prompt,
)
from tkr_receipts.services.quotation_service import scope_to_quotation_items
from tkr_receipts.utils.logging import document_context, get_logger

logger = get_logger(__name__)

_FENCE_RE = re.compile(r"^```(\w*)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)

EMPTY_SCOPE_INTRODUCTION = (
    "No scope items were available to generate a detailed quotation. "
    "Please verify the PDF processing."
)
EMPTY_SCOPE_TERMS = ["Standard terms apply.", "This quotation is valid for 30 days."]
EMPTY_SCOPE_CONCLUSION = "We look forward to the opportunity to work with you."

FALLBACK_INTRODUCTION = (
    "We are pleased to provide this quotation for the construction services as detailed below. "
    "Note: This is a fallback due to an error in dynamic content generation."
)
FALLBACK_TERMS = [
    "All work to be completed in a workmanlike manner according to standard practices.",
    "Any alteration or deviation from scope involving extra costs will be executed only upon "
    "written orders, and will become an extra charge over and above the estimate.",
    "Payment to be made as follows: [Payment Terms Placeholder, e.g., 50% deposit, 50% upon completion].",
    "This quotation is valid for 30 days.",
]
FALLBACK_CONCLUSION = (
    "We appreciate the opportunity to provide this quotation and look forward to working with you."
)


class AIServiceError(Exception):
    """AI service request failed."""

    pass


class AITransientError(AIServiceError):
    """Timeout, rate limit or server error; safe to retry."""

    pass


class AIInvalidJSONError(AIServiceError):
    """AI returned text that is not the expected JSON."""

    def __init__(self, message: str, raw_response: str) -> None:
        super().__init__(message)
        self.raw_response = raw_response


def parse_ai_json(response_text: str, context: Optional[str] = None) -> Any:
    """
    Parse a JSON reply, tolerating one surrounding Markdown code fence.

    Args:
        response_text: Raw model output
        context: What the reply was for, used in the error message

    Raises:
        AIInvalidJSONError: If the text is not valid JSON
    """
    json_str = response_text.strip()
    match = _FENCE_RE.match(json_str)
    if match and match.group(2):
        json_str = match.group(2).strip()

    try:
        return json.loads(json_str)
    except json.JSONDecodeError as e:
        suffix = f" for {context}" if context else ""
        logger.error(
            "Failed to parse AI JSON response",
            context=context,
            error=str(e),
            raw_response=response_text[:500],
        )
        raise AIInvalidJSONError(
            f"AI returned an invalid JSON format{suffix}. Details: {e}",
            raw_response=response_text,
        ) from e


def base_file_name(file_name: str) -> str:
    """File name without its last extension."""
    return re.sub(r"\.[^/.]+$", "", file_name)


def _response_text(data: dict) -> str:
    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError) as e:
        raise AIServiceError(f"AI response contained no candidates: {data}") from e
    return "".join(part.get("text", "") for part in parts)


class GeminiService:
    """Thin REST client for the generateContent endpoint."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        config: Optional[GeminiConfig] = None,
        company: Optional[CompanyDetails] = None,
    ) -> None:
        """
        Initialize the Gemini client.

        Args:
            client: Shared HTTP client (a new one per request when omitted)
            config: API configuration (defaults to settings.gemini)
            company: Issuer details written into quotations
        """
        self.config = config or settings.gemini
        self.company = company or settings.quotation.company
        self.client = client
        self.endpoint = f"{self.config.base_url.rstrip('/')}/models/{self.config.model}:generateContent"

        if not self.config.api_key.get_secret_value():
            logger.warning("GEMINI_API_KEY is not set, AI requests will be rejected")

        logger.info("Gemini service initialized", model=self.config.model)

    async def _post(self, http: httpx.AsyncClient, payload: dict) -> httpx.Response:
        try:
            return await http.post(
                self.endpoint,
                params={"key": self.config.api_key.get_secret_value()},
                json=payload,
            )
        except httpx.TimeoutException as e:
            logger.error("Gemini API timeout", error=str(e))
            raise AITransientError("AI request timed out") from e
        except httpx.HTTPError as e:
            logger.error("Gemini API connection failed", error=str(e))
            raise AITransientError(f"AI connection failed: {e}") from e

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=2, max=60),
        retry=retry_if_exception_type(AITransientError),
        reraise=True,
    )
    async def generate_content(self, payload: dict) -> str:
        """
        Send one generateContent request and return the reply text.

        Raises:
            AITransientError: On timeouts, 429 and 5xx after retries
            AIServiceError: On any other failure
        """
        if self.client is not None:
            response = await self._post(self.client, payload)
        else:
            async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as http:
                response = await self._post(http, payload)

        if response.status_code == 429:
            logger.warning("Rate limited by Gemini API")
            raise AITransientError("AI rate limit exceeded")
        if response.status_code >= 500:
            logger.error("Gemini API server error", status=response.status_code)
            raise AITransientError(f"AI server error: {response.status_code}")
        if response.status_code != 200:
            logger.error("Gemini API request rejected", status=response.status_code)
            raise AIServiceError(f"AI request failed with HTTP {response.status_code}: {response.text}")

        try:
            data = response.json()
        except ValueError as e:
            logger.error("Gemini API returned a non-JSON body", body=response.text[:200])
            raise AIServiceError("AI response body is not JSON") from e
        return _response_text(data)

    async def process_pdf_for_scope(self, pdf_path: Path) -> list[ScopeItem]:
        """
        Extract painting, cladding and facade scope items from a PDF.

        Args:
            pdf_path: Document to analyse

        Returns:
            Extracted items (possibly empty)

        Raises:
            AIInvalidJSONError: If the reply is not a JSON array of items
            AIServiceError: If the document cannot be read or the request fails
        """
        pdf_path = Path(pdf_path)
        with document_context(file=pdf_path.name):
            return await self._extract_scope(pdf_path)

    async def _extract_scope(self, pdf_path: Path) -> list[ScopeItem]:
        logger.info("Processing PDF for scope")
        try:
            async with aiofiles.open(pdf_path, mode="rb") as f:
                content = await f.read()
        except OSError as e:
            raise AIServiceError(f"Failed to read {pdf_path.name}: {e}") from e

        size_mb = len(content) / (1024 * 1024)
        if size_mb > self.config.max_file_size_mb:
            raise AIServiceError(
                f"{pdf_path.name} is {size_mb:.1f} MB, larger than the "
                f"{self.config.max_file_size_mb} MB limit"
            )

        payload = {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": SCOPE_EXTRACTION_PROMPT},
                        {
                            "inline_data": {
                                "mime_type": "application/pdf",
                                "data": base64.b64encode(content).decode("ascii"),
                            }
                        },
                    ],
                }
            ],
            "generationConfig": {"responseMimeType": "application/json", "temperature": 0.1},
        }

        try:
            text = await self.generate_content(payload)
        except AIInvalidJSONError:
            raise
        except AIServiceError as e:
            logger.error("Error processing PDF with AI", error=str(e))
            raise AIServiceError(
                f"Failed to process PDF {pdf_path.name} with AI. Details: {e}"
            ) from e

        parsed = parse_ai_json(text, pdf_path.name)
        if not isinstance(parsed, list):
            raise AIInvalidJSONError(
                f"AI returned a JSON {type(parsed).__name__} for {pdf_path.name}, expected an array",
                raw_response=text,
            )
        try:
            items = [ScopeItem.model_validate(item) for item in parsed]
        except ValidationError as e:
            raise AIInvalidJSONError(
                f"AI returned malformed scope items for {pdf_path.name}. Details: {e}",
                raw_response=text,
            ) from e

        logger.info("Scope items extracted", count=len(items))
        return items

    def _company_info(self) -> CompanyInfo:
        return CompanyInfo.model_validate(self.company.model_dump())

    def empty_quotation(self, base_name: str, today: date) -> QuotationStructure:
        """Template used when there are no scope items to quote."""
        return QuotationStructure(
            title=f"Construction Services Quotation for {base_name}",
            client_info=ClientInfo(date=today.isoformat(), project_id=f"Project: {base_name}"),
            company_info=self._company_info(),
            introduction_text=EMPTY_SCOPE_INTRODUCTION,
            items=[],
            subtotal_placeholder=SUBTOTAL_PLACEHOLDER,
            total_price_placeholder=GRAND_TOTAL_PLACEHOLDER,
            terms_and_conditions=list(EMPTY_SCOPE_TERMS),
            conclusion_text=EMPTY_SCOPE_CONCLUSION,
        )

    def fallback_quotation(
        self, items: list[ScopeItem], base_name: str, today: date
    ) -> QuotationStructure:
        """Template built straight from the extracted items when AI drafting fails."""
        return QuotationStructure(
            title=f"Construction Services Quotation for {base_name}",
            client_info=ClientInfo(date=today.isoformat(), project_id=f"Project: {base_name}"),
            company_info=self._company_info(),
            introduction_text=FALLBACK_INTRODUCTION,
            items=scope_to_quotation_items(items),
            subtotal_placeholder=SUBTOTAL_PLACEHOLDER,
            tax_placeholder=TAX_PLACEHOLDER,
            total_price_placeholder=GRAND_TOTAL_PLACEHOLDER,
            terms_and_conditions=list(FALLBACK_TERMS),
            conclusion_text=FALLBACK_CONCLUSION,
        )

    async def generate_quotation_structure(
        self,
        items: list[ScopeItem],
        client_file_name: str,
        today: Optional[date] = None,
    ) -> QuotationStructure:
        """
        Draft a quotation around extracted scope items.

        Never raises for AI failures: any error produces the fallback
        template built from the items.
        """
        base_name = base_file_name(client_file_name)
        today = today or date.today()
        current_date = today.isoformat()

        if not items:
            logger.info("No scope items, using empty quotation template", file=client_file_name)
            return self.empty_quotation(base_name, today)

        prompt_items = scope_to_quotation_items(items)
        prompt = quotation_prompt(
            [item.model_dump(by_alias=True, exclude_none=True) for item in prompt_items],
            client_file_name,
            base_name,
            current_date,
            self.company.model_dump(by_alias=True),
        )
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"responseMimeType": "application/json", "temperature": 0.3},
        }

        try:
            text = await self.generate_content(payload)
            parsed = parse_ai_json(text, f"Quotation for {client_file_name}")
            structure = QuotationStructure.model_validate(parsed)
        except (AIServiceError, ValidationError) as e:
            logger.error(
                "Error generating quotation structure, using fallback template",
                file=client_file_name,
                error=str(e),
                raw_response=getattr(e, "raw_response", None),
            )
            return self.fallback_quotation(items, base_name, today)

        client = structure.client_info
        if not client.date or client.date.startswith("["):
            client.date = current_date
        if not client.project_id or base_name not in client.project_id:
            client.project_id = f"Project: {base_name}"
        if (
            not structure.title
            or base_name not in structure.title
            or "painting services" in structure.title.lower()
        ):
            structure.title = f"Construction Services Quotation for {base_name}"

        for item, source in zip(structure.items, prompt_items):
            if not item.unit_of_measure and source.unit_of_measure:
                item.unit_of_measure = source.unit_of_measure
            if not item.category and source.category:
                item.category = source.category
            if not item.material_or_finish and source.material_or_finish:
                item.material_or_finish = source.material_or_finish

        logger.info(
            "Quotation structure generated",
            file=client_file_name,
            items=len(structure.items),
        )
        return structure

    def initialize_chat(self, context: str) -> "ChatSession":
        """Start a conversation primed with the given context."""
        return ChatSession(self, chat_system_instruction(context))


class ChatSession:
    """Multi-turn conversation; history is kept client side."""

    def __init__(self, service: GeminiService, system_instruction: str) -> None:
        self.service = service
        self.system_instruction = system_instruction
        self.history: list[dict] = []

    async def send_message(self, message: str) -> str:
        """
        Send one user turn and return the model's reply.

        Raises:
            AIServiceError: If the request fails; history is left unchanged
        """
        user_turn = {"role": "user", "parts": [{"text": message}]}
        payload = {
            "systemInstruction": {"parts": [{"text": self.system_instruction}]},
            "contents": [*self.history, user_turn],
        }
        try:
            reply = await self.service.generate_content(payload)
        except AIServiceError as e:
            logger.error("Error sending chat message", error=str(e))
            raise AIServiceError(f"AI chat error: {e}") from e

        self.history.extend([user_turn, {"role": "model", "parts": [{"text": reply}]}])
        return reply
