"""Host applications that test files are executed in."""
