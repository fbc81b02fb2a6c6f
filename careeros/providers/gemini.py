"""Gemini provider implementation."""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any, Dict, List, Optional, cast

from google import genai
from google.genai import types

from .types import (
    FunctionCall,
    GenerationConfig,
    LLMResponse,
    Message,
    ToolSchema,
)

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"


class GeminiProvider:
    """Google Gemini provider using google-genai SDK."""

    def __init__(
        self,
        api_key: str,
        model: str,
        api_base: str = "",
        search_grounding: bool = False,
        image_model: str = DEFAULT_IMAGE_MODEL,
    ) -> None:
        self.model = model
        self.image_model = image_model
        self.search_grounding = search_grounding
        # google-genai does not expose a stable api_base option; keep for future use
        _ = api_base
        self.client = genai.Client(api_key=api_key)

    async def generate(
        self,
        messages: List[Message],
        tools: Optional[List[ToolSchema]],
        config: GenerationConfig,
    ) -> LLMResponse:
        contents = self._to_gemini_contents(messages)
        gemini_tools = self._to_gemini_tools(tools)

        response = await asyncio.to_thread(
            self.client.models.generate_content,
            model=config.model or self.model,
            contents=contents,
            config=types.GenerateContentConfig(
                system_instruction=config.system_prompt if config.system_prompt else None,
                tools=cast(Any, gemini_tools),
                max_output_tokens=config.max_tokens,
                temperature=config.temperature,
            ),
        )

        return self._from_gemini_response(response)

    async def generate_image(
        self,
        prompt: str,
        aspect_ratio: str = "16:9",
        model: str = "",
    ) -> Optional[str]:
        """Generate an image and return it as a data URI, or None on failure."""
        try:
            response = await asyncio.to_thread(
                self.client.models.generate_content,
                model=model or self.image_model,
                contents=[types.Content(role="user", parts=[types.Part.from_text(text=prompt)])],
                config=types.GenerateContentConfig(
                    image_config=types.ImageConfig(aspect_ratio=aspect_ratio),
                ),
            )
        except Exception as e:
            logger.error("Image generation failed: %s", e)
            return None
        return self._image_data_uri(response)

    def _image_data_uri(self, response) -> Optional[str]:
        if not response.candidates:
            return None
        candidate = response.candidates[0]
        parts = candidate.content.parts if candidate.content else []
        for part in parts or []:
            if part.inline_data and part.inline_data.data:
                payload = base64.b64encode(part.inline_data.data).decode("ascii")
                return f"data:{part.inline_data.mime_type};base64,{payload}"
        return None

    def _from_gemini_response(self, response) -> LLMResponse:
        if not response.candidates:
            raise RuntimeError("Empty LLM response: no candidates")

        candidate = response.candidates[0]
        parts = candidate.content.parts if candidate.content else []
        function_calls: List[FunctionCall] = []
        text_parts: List[str] = []

        for part in parts or []:
            if part.function_call:
                function_calls.append(
                    FunctionCall(
                        name=part.function_call.name,
                        arguments=dict(part.function_call.args) if part.function_call.args else {},
                        id=part.function_call.id,
                    )
                )
            elif part.text:
                text_parts.append(part.text)

        usage = None
        usage_metadata = getattr(response, "usage_metadata", None)
        if usage_metadata is not None and usage_metadata.total_token_count is not None:
            usage = {"total_tokens": int(usage_metadata.total_token_count)}

        return LLMResponse(
            text=" ".join(text_parts).strip(),
            function_calls=function_calls,
            usage=usage,
            raw=response,
        )

    def _to_gemini_contents(self, messages: List[Message]) -> List[types.Content]:
        contents: List[types.Content] = []
        for msg in messages:
            role = "model" if msg.role == "assistant" else "user"

            parts: List[types.Part] = []
            for part in msg.parts:
                if part.text:
                    parts.append(types.Part.from_text(text=part.text))
                elif part.inline_data:
                    parts.append(
                        types.Part.from_bytes(
                            data=part.inline_data.data,
                            mime_type=part.inline_data.mime_type,
                        )
                    )

            if parts:
                contents.append(types.Content(role=role, parts=parts))
        return contents

    def _to_gemini_tools(self, tools: Optional[List[ToolSchema]]) -> Optional[List[types.Tool]]:
        gemini_tools: List[types.Tool] = []
        if tools:
            declarations = [self._to_gemini_declaration(tool) for tool in tools]
            if declarations:
                gemini_tools.append(types.Tool(function_declarations=declarations))

        if self.search_grounding:
            gemini_tools.append(types.Tool(google_search=types.GoogleSearch()))

        return gemini_tools or None

    def _to_gemini_declaration(self, tool: ToolSchema) -> types.FunctionDeclaration:
        properties: Dict[str, types.Schema] = {}
        required = tool.parameters.get("required", [])

        for prop_name, prop_def in tool.parameters.get("properties", {}).items():
            properties[prop_name] = self._to_gemini_schema(prop_def or {})

        return types.FunctionDeclaration(
            name=tool.name,
            description=tool.description,
            parameters=types.Schema(
                type=types.Type.OBJECT,
                properties=properties,
                required=required,
            ),
        )

    def _to_gemini_schema(self, schema_def: Dict[str, Any]) -> types.Schema:
        type_name = str(schema_def.get("type", "string") or "string").lower()
        type_map = {
            "string": types.Type.STRING,
            "integer": types.Type.INTEGER,
            "number": types.Type.NUMBER,
            "boolean": types.Type.BOOLEAN,
            "object": types.Type.OBJECT,
            "array": types.Type.ARRAY,
        }
        gemini_type = type_map.get(type_name, types.Type.STRING)

        kwargs: Dict[str, Any] = {"type": gemini_type}
        if schema_def.get("description"):
            kwargs["description"] = schema_def["description"]

        enum_values = schema_def.get("enum")
        if isinstance(enum_values, list) and enum_values:
            kwargs["enum"] = [str(v) for v in enum_values]

        if gemini_type == types.Type.OBJECT:
            props: Dict[str, types.Schema] = {}
            for prop_name, prop_def in (schema_def.get("properties") or {}).items():
                if isinstance(prop_def, dict):
                    props[prop_name] = self._to_gemini_schema(prop_def)
            kwargs["properties"] = props
            required = schema_def.get("required")
            if isinstance(required, list) and required:
                kwargs["required"] = required

        if gemini_type == types.Type.ARRAY:
            items = schema_def.get("items")
            if isinstance(items, dict):
                kwargs["items"] = self._to_gemini_schema(items)

        return types.Schema(**kwargs)
