"""Port interfaces and exceptions for the todos bounded context."""
