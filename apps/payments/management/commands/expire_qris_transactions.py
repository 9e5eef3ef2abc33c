from django.core.management.base import BaseCommand

from apps.payments.services import expire_overdue_transactions


class Command(BaseCommand):
    help = 'Expires pending QRIS transactions whose QR code has passed its deadline and cancels their orders.'

    def handle(self, *args, **options):
        expired = expire_overdue_transactions()
        if expired:
            self.stdout.write(self.style.SUCCESS(f"Expired {expired} QRIS transaction(s)."))
        else:
            self.stdout.write("No overdue QRIS transactions.")
