"""
Location Agent for EcoDrive

DESIGN DECISION: Place search and driving distance are delegated to
Gemini. We do not geocode or route anything ourselves.

CRITICAL BOUNDARIES:

1. PLACE SEARCH:
   - CAN: Suggest named places and summarize an address
   - NEVER raises: every failure becomes a SearchResponse with an
     explanatory summary and no places
   - CANNOT: Supply map links; a model-written URL is not trusted

2. DISTANCE ESTIMATE:
   - CAN: Return a number of km parsed out of free text
   - km <= 0 means "no route"; the caller must reject the trip
   - An unreachable or unconfigured model raises LookupUnavailable
   - CANNOT: Record anything - it only answers questions

The LLM is an ESTIMATOR, not a RECORD KEEPER.
"""

from typing import Any, Optional

import google.generativeai as genai
import structlog
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from ecodrive.agents.parsing import extract_json_object, parse_distance_km
from ecodrive.config import GeminiSettings, get_settings
from ecodrive.models.dashboard import DistanceResult, PlaceResult, SearchResponse
from ecodrive.models.trip import Coordinates


logger = structlog.get_logger(__name__)

NOT_CONFIGURED_MESSAGE = "API Key não configurada. Verifique o arquivo .env"
LOOKUP_FAILED_MESSAGE = "Erro na consulta. Verifique sua conexão."
NO_SUMMARY_MESSAGE = "Nenhum resumo disponível."


class LocationError(Exception):
    """Base exception for location lookups."""
    pass


class LookupUnavailable(LocationError):
    """The model could not be reached or is not configured."""
    pass


class RouteNotFound(LocationError):
    """The model answered but found no route (distance <= 0)."""

    def __init__(self, origin: str, destination: str):
        self.origin = origin
        self.destination = destination
        super().__init__(
            f"Rota não encontrada entre '{origin}' e '{destination}'. "
            "Tente informar endereços mais detalhados."
        )


def _location_hint(coords: Optional[Coordinates]) -> str:
    if coords is None:
        return ""
    return (
        f"\nO usuário está próximo da latitude {coords.lat:.5f} e longitude "
        f"{coords.lng:.5f}; prefira resultados nessa região."
    )


def _first_source_uri(response: Any) -> Optional[str]:
    """Best-effort: first grounding source URI attached to the reply."""
    try:
        metadata = response.candidates[0].grounding_metadata
        for chunk in metadata.grounding_chunks:
            for attr in ("maps", "web"):
                source = getattr(chunk, attr, None)
                uri = getattr(source, "uri", None)
                if uri:
                    return uri
    except (AttributeError, IndexError, TypeError):
        return None
    return None


class LocationAgent:
    """
    Gemini-backed place search and distance estimation.

    RESPONSIBILITIES:
    - Turn a free-text query into candidate places
    - Estimate the driving distance between two place names

    BOUNDARIES:
    - NEVER touches the store
    - ALWAYS parses replies defensively
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Optional[Any] = None,
        retry_attempts: int = 2,
    ):
        """
        Args:
            settings: Gemini configuration (defaults to environment)
            model: Object exposing generate_content_async(prompt).
                   If None, a GenerativeModel is built from settings.
            retry_attempts: Attempts per call before giving up
        """
        self._settings = settings or get_settings().gemini
        self._retry_attempts = retry_attempts
        self._model = model
        if self._model is None and self._settings.is_configured:
            self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    @property
    def is_available(self) -> bool:
        return self._model is not None

    async def _generate(self, prompt: str) -> Any:
        """Call the model, retrying transient failures."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
            reraise=True,
        ):
            with attempt:
                return await self._model.generate_content_async(prompt)

    @staticmethod
    def _response_text(response: Any) -> str:
        # .text raises ValueError when the reply has no text parts
        try:
            return (response.text or "").strip()
        except ValueError:
            return ""

    async def search_places(
        self,
        query: str,
        coords: Optional[Coordinates] = None,
    ) -> SearchResponse:
        """
        Find places matching a free-text query.

        Never raises. Without a model, or on any failure, the summary
        explains what went wrong and the place list is empty.
        """
        if not self.is_available:
            logger.warning("location_agent_not_configured", operation="search_places")
            return SearchResponse(summary=NOT_CONFIGURED_MESSAGE, places=[])

        prompt = f"""Encontre locais que correspondam a: "{query}". Forneça um resumo do endereço.{_location_hint(coords)}

Responda SOMENTE com um objeto JSON neste formato:
{{"summary": "resumo do endereço", "places": [{{"name": "nome do local", "address": "endereço completo"}}]}}

Se não encontrar nada, retorne "places" vazio e explique no "summary"."""

        try:
            response = await self._generate(prompt)
        except Exception as e:
            logger.warning("place_search_failed", query=query, error=str(e))
            return SearchResponse(summary=LOOKUP_FAILED_MESSAGE, places=[])

        text = self._response_text(response)
        data = extract_json_object(text)
        if data is None:
            return SearchResponse(summary=text or NO_SUMMARY_MESSAGE, places=[])

        # Links are never taken from the reply text; only grounding
        # metadata could carry a real one
        places = []
        raw_places = data.get("places")
        for item in raw_places if isinstance(raw_places, list) else []:
            if not isinstance(item, dict):
                continue
            places.append(PlaceResult(
                name=str(item.get("name") or "Local encontrado"),
                address=str(item.get("address") or ""),
            ))

        summary = data.get("summary")
        return SearchResponse(
            summary=str(summary) if summary else NO_SUMMARY_MESSAGE,
            places=places,
        )

    async def calculate_distance(
        self,
        origin: str,
        destination: str,
        coords: Optional[Coordinates] = None,
    ) -> DistanceResult:
        """
        Estimate the one-way driving distance between two places.

        Returns:
            DistanceResult; km == 0 when the reply holds no usable number

        Raises:
            LookupUnavailable: If the model is not configured or the call fails
        """
        if not self.is_available:
            raise LookupUnavailable(NOT_CONFIGURED_MESSAGE)

        prompt = (
            f'Qual é a distância exata de condução em quilômetros entre "{origin}" '
            f'e "{destination}"? Responda o número decimal (use ponto para decimais). '
            f"Se não encontrar, diga 0.{_location_hint(coords)}"
        )

        try:
            response = await self._generate(prompt)
        except Exception as e:
            logger.warning(
                "distance_lookup_failed",
                origin=origin,
                destination=destination,
                error=str(e),
            )
            raise LookupUnavailable(LOOKUP_FAILED_MESSAGE) from e

        km = parse_distance_km(self._response_text(response))
        return DistanceResult(km=km, source_uri=_first_source_uri(response))
