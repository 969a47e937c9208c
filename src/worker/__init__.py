"""Background workers for the billing ledger"""
from .overdue_sweeper import OverdueSweeperWorker
from .payment_reconciler import PaymentReconcilerWorker

__all__ = ["OverdueSweeperWorker", "PaymentReconcilerWorker"]
