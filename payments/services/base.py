from abc import ABC, abstractmethod


class PaymentProvider(ABC):
    @abstractmethod
    def initiate(self, phone, amount, account_reference, transaction_desc):
        """Start a payment and return the provider's raw acknowledgement."""
        raise NotImplementedError
