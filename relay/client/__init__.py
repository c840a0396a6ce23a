from relay.client.session import ChatSession, FileTokenStore, MemoryTokenStore

__all__ = ["ChatSession", "FileTokenStore", "MemoryTokenStore"]
