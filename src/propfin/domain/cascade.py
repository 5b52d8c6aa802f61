"""Dependent-record cascade.

Deleting an owning row removes or detaches everything that points at it, in
an order that never leaves a dangling reference. Each method is a single
``atomic()`` unit; a failure part-way leaves nothing deleted.
"""

import logging

from propfin.database.base import Database
from propfin.domain.balance import adjust_balance
from propfin.domain.errors import (
    AccountNotFoundError,
    NotFoundError,
    account_not_found,
    entity_not_found,
)

logger = logging.getLogger(__name__)


class CascadeService:
    """Ordered deletes for buildings, shops, tenants and accounts."""

    def __init__(self, db: Database):
        self.db = db

    def _detach_shop(self, shop_id: int) -> None:
        self.db.delete_rent_payments(shop_id=shop_id)
        self.db.delete_tenant_shops(shop_id=shop_id)
        self.db.clear_transaction_reference("shop_id", shop_id)

    def delete_building(self, building_id: int, user_id: int) -> None:
        """Delete a building with all of its shops."""
        building = self.db.get_building(building_id)
        if building is None or building.user_id != user_id:
            raise NotFoundError(entity_not_found("Building", building_id))

        with self.db.atomic():
            shops = self.db.list_shops(user_id=user_id, building_id=building_id)
            for shop in shops:
                self._detach_shop(shop.id)
            for shop in shops:
                self.db.delete_shop(shop.id)
            self.db.clear_transaction_reference("building_id", building_id)
            self.db.delete_building(building_id)

        logger.info("Deleted building %s and %d shops", building_id, len(shops))

    def delete_shop(self, shop_id: int, user_id: int) -> None:
        shop = self.db.get_shop(shop_id)
        if shop is None or shop.user_id != user_id:
            raise NotFoundError(entity_not_found("Shop", shop_id))

        with self.db.atomic():
            self._detach_shop(shop_id)
            self.db.delete_shop(shop_id)

        logger.info("Deleted shop %s", shop_id)

    def delete_tenant(self, tenant_id: int, user_id: int) -> None:
        """Delete a tenant, freeing every shop they held."""
        tenant = self.db.get_tenant(tenant_id)
        if tenant is None or tenant.user_id != user_id:
            raise NotFoundError(entity_not_found("Tenant", tenant_id))

        with self.db.atomic():
            self.db.delete_rent_payments(tenant_id=tenant_id)
            self.db.delete_tenant_shops(tenant_id=tenant_id)
            released = self.db.release_tenant_shops(tenant_id)
            self.db.clear_transaction_reference("tenant_id", tenant_id)
            self.db.delete_tenant(tenant_id)

        logger.info("Deleted tenant %s, released %d shops", tenant_id, released)

    def delete_account(self, account_id: int, user_id: int) -> None:
        """Delete an account with its transactions and transfers.

        Each transfer's effect on the account at its other end is reversed, so
        that account's balance still matches its remaining history.
        """
        account = self.db.get_account(account_id)
        if account is None or account.user_id != user_id:
            raise AccountNotFoundError(account_not_found(account_id))

        with self.db.atomic():
            for transfer in self.db.list_transfers(account_id=account_id):
                if transfer.from_account_id == account_id:
                    counterpart, delta = transfer.to_account_id, -transfer.amount
                else:
                    counterpart, delta = transfer.from_account_id, transfer.amount
                if counterpart != account_id:
                    adjust_balance(self.db, counterpart, transfer.user_id, delta)
            transactions = self.db.delete_account_transactions(account_id)
            transfers = self.db.delete_account_transfers(account_id)
            self.db.delete_account(account_id)

        logger.info(
            "Deleted account %s with %d transactions and %d transfers",
            account_id, transactions, transfers,
        )
