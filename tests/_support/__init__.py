"""
Test support modules for jobrunner tests.

The modules in this package hold sample job classes at module level so
their annotations resolve and the type resolver can find them by name:

- jobs: job classes for every entry-point shape and failure mode
- duplicates_a / duplicates_b: two classes sharing one short name
- host: a host module whose imports form a "referenced modules" set
"""
