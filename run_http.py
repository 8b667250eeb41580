"""HTTP runner for MCP server (remote deployment)."""
import os

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.server import TransportSecuritySettings
from yt_transcript_extractor.server import (
    app_lifespan,
    get_transcript,
    extract_subtitles,
    transcribe_audio,
    transcribe_video,
    health_resource,
    help_resource,
    TOOL_ANNOTATIONS,
)

server = FastMCP(
    "YouTube Transcript Extractor",
    instructions="Extract YouTube captions, falling back to audio transcription",
    lifespan=app_lifespan,
    host="0.0.0.0",
    port=int(os.environ.get("PORT", "8401")),
    transport_security=TransportSecuritySettings(enable_dns_rebinding_protection=False),
)

# Register tools with annotations
server.tool(annotations=TOOL_ANNOTATIONS)(get_transcript)
server.tool(annotations=TOOL_ANNOTATIONS)(extract_subtitles)
server.tool(annotations=TOOL_ANNOTATIONS)(transcribe_audio)
server.tool(annotations=TOOL_ANNOTATIONS)(transcribe_video)

# Register resources
server.resource("youtube://health")(health_resource)
server.resource("youtube://help")(help_resource)

server.run(transport="streamable-http")
