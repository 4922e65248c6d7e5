import json

from django.core.management.base import BaseCommand, CommandError
from django.core.serializers.json import DjangoJSONEncoder

from apps.warehouse.exceptions import WarehouseError
from apps.warehouse.gateway import warehouse_workflow_service


class Command(BaseCommand):
    help = "Prints the stock coverage of one pending Mikro order, line by line."

    def add_arguments(self, parser):
        parser.add_argument("order_number", type=str, help="Mikro order number, e.g. 'A-1024'.")
        parser.add_argument("--json", action="store_true", help="Print the raw detail payload as JSON.")

    def handle(self, *args, **options):
        order_number = options["order_number"]

        try:
            detail = warehouse_workflow_service.get_order_detail(order_number)
        except WarehouseError as exc:
            raise CommandError(f"[{exc.error_code}] {exc}") from exc

        if options["json"]:
            self.stdout.write(json.dumps(detail, cls=DjangoJSONEncoder, indent=2, ensure_ascii=False))
            return

        order = detail["order"]
        coverage = detail["coverage"]
        workflow = detail["workflow"]

        self.stdout.write(
            self.style.SUCCESS(
                f"--- {order['order_number']} / {order['customer_code']} {order['customer_name']} ---"
            )
        )
        self.stdout.write(f"Workflow: {workflow['status'] if workflow else 'not started'}")
        self.stdout.write(
            f"Coverage: {coverage['status']} ({coverage['covered_percent']}%) "
            f"full={coverage['full_lines']} partial={coverage['partial_lines']} missing={coverage['missing_lines']}"
        )
        self.stdout.write(f"Reservations: {detail['reservation_source']}\n")

        if not detail["lines"]:
            self.stdout.write(self.style.WARNING("No outstanding lines."))
            return

        for line in detail["lines"]:
            style = self.style.SUCCESS if line["stock_coverage_status"] == "FULL" else self.style.WARNING
            self.stdout.write(
                style(
                    f"  {line['line_key']:<24} remaining={line['remaining_qty']} "
                    f"stock={line['stock_available']} covered={line['covered_qty']} "
                    f"[{line['stock_coverage_status']}] shelf={line['shelf_code'] or '-'}"
                )
            )
            for reservation in line["reservations"]:
                if reservation["is_current_order"]:
                    continue
                self.stdout.write(
                    f"      reserved by {reservation['order_number']} "
                    f"{reservation['customer_name'] or reservation['customer_code']}: {reservation['active_qty']}"
                )
