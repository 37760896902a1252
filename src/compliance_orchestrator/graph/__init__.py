"""Phase sequencing on LangGraph."""
