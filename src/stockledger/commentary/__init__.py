from stockledger.commentary.gateway import LLMGateway, LLMResponse, ProviderConfig
from stockledger.commentary.service import CommentaryService

__all__ = ["CommentaryService", "LLMGateway", "LLMResponse", "ProviderConfig"]
