"""
Services module for business logic separation.

- redirect_service: create / resolve / get_info / delete facade
- code_generator, code_allocator: random codes and collision-free allocation
- expiration: expiry policy and the purge sweep
- click_recorder: non-blocking click accounting
- maintenance: periodic purge and rate limiter cleanup
"""
