"""Generative backend gateways."""

from analyzer.providers.gemini import GeminiGateway, get_gemini_gateway

__all__ = ["GeminiGateway", "get_gemini_gateway"]
