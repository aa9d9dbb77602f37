"""
User service client package for the master server.

The master server never owns user records; it mirrors them from the remote
user service. This package keeps that dependency from stalling the server:

- app.adapters: UserServiceClient, one coroutine per remote operation.
- app.caching: UserCache, a bounded TTL cache of recently seen users.
- app.models: the User snapshot and the tagged call results.
- app.bootstrap: create_user_service(), the single initialization call.

Design notes:
- Module import must not perform network calls.
- Operations never raise; they return a ServiceResult and callers branch on
  its kind.
- Use the shared/ utilities for config, logging, metrics, errors and
  liveness.
"""
