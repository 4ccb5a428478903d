# youthblood/management/commands/seed_requests.py
from datetime import timedelta
from itertools import cycle

from django.core.management.base import BaseCommand
from django.utils import timezone

from youthblood.exceptions import BackendError
from youthblood.models import BLOOD_TYPES, BloodRequest, Status, Urgency
from youthblood.services import BloodsService

SAMPLE_HOSPITALS = [
    ("Dhaka Medical College Hospital", "Dhaka"),
    ("Chittagong Medical College Hospital", "Chattogram"),
    ("Rajshahi Medical College Hospital", "Rajshahi"),
    ("Sylhet MAG Osmani Medical College", "Sylhet"),
]


class Command(BaseCommand):
    help = "Post sample pending blood requests to the backend (development data)."

    def add_arguments(self, parser):
        parser.add_argument("--count", type=int, default=8,
                            help="Number of requests to create (default: 8)")
        parser.add_argument("--email", default="seed@youthblood.local",
                            help="Requester email stamped on the requests")
        parser.add_argument("--name", default="Seed Requester",
                            help="Requester name stamped on the requests")

    def handle(self, *args, **opts):
        count = opts["count"]
        email = opts["email"]
        service = BloodsService()

        groups = cycle(bt for bt, _ in BLOOD_TYPES)
        urgencies = cycle(Urgency.values)
        hospitals = cycle(SAMPLE_HOSPITALS)
        today = timezone.localdate()

        created, failed = 0, 0
        for i in range(count):
            hospital, city = next(hospitals)
            item = BloodRequest(
                patient_name=f"Sample Patient {i + 1}",
                blood_group=next(groups),
                required_units=(i % 4) + 1,
                mobile_number="01700000000",
                hospital_name=hospital,
                location=city,
                sick_details="Sample request created by seed_requests.",
                urgency=next(urgencies),
                needed_date=today + timedelta(days=i % 7),
                status=Status.PENDING,
                requested_by=opts["name"],
                requester_email=email,
            )
            try:
                result = service.create_request(item)
            except BackendError as exc:
                failed += 1
                self.stdout.write(self.style.WARNING(f"#{i + 1}: failed ({exc.message})."))
                continue
            created += 1
            self.stdout.write(self.style.SUCCESS(f"#{i + 1}: created {result.id} ({item.blood_group})."))

        self.stdout.write(self.style.SUCCESS(f"Done. Created {created} request(s), {failed} failed."))
