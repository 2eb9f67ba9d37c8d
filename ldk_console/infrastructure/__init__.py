# Console Infrastructure Package
"""
Infrastructure layer containing:
- tasks/: Async task dispatchers for the worker pool and event loop substrates
- api/: HTTP client and request/response models for LDK Server
- config: Node config file loading
- settings: Process settings from the environment
- logging/: Log formatters and setup
"""
