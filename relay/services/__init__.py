from relay.services.formatter import FormattedReply, extract_table, format_response
from relay.services.relay_service import InboundMessage, process_inbound_message
from relay.services.result import ErrorCode, Result
from relay.services.session_orchestrator import SessionOrchestrator
from relay.services.session_store import SessionRecord, SessionStore, SqlSessionStore
from relay.services.token_expiry import is_token_expired
