from query_agent.sse.parser import ServerSentEvent, parse_server_sent_events
from query_agent.sse.reader import fetch_server_sent_events

__all__ = ["ServerSentEvent", "fetch_server_sent_events", "parse_server_sent_events"]
