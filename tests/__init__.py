"""
Cora Analyzer Test Suite.
=========================

Test modules:
- test_http_client: Retrying request client
- test_cache: Result cache
- test_search: Search resolver and providers
- test_extractor: Markup reduction and embedded ratings
- test_gateway: Model gateway and audit log
- test_parser: Rating parser
- test_orchestrator: End-to-end pipeline
- test_enrollments: Enrollment history client
- test_config_and_utils: Settings, storage and helpers
"""
