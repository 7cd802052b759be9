"""
Services module for business logic.

- domain/: order lifecycle and settlement services (use these from routers)
- events/: transactional outbox and its Redis publisher

Usage:
    from rest_api.services.domain import SettlementService
    service = SettlementService(db)
    order = service.create_order(table_id=3, waiter_id=user_id)
"""
