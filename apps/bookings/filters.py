import django_filters

from .models import Reservation


class ReservationFilter(django_filters.FilterSet):
    date_from = django_filters.DateFilter(field_name="date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="date", lookup_expr="lte")
    space = django_filters.CharFilter(field_name="space__space_type")
    # Free text over the confirmation number and contact details
    search = django_filters.CharFilter(method="filter_search")

    class Meta:
        model = Reservation
        fields = {
            'status': ['exact'],
            'payment_status': ['exact'],
            'attendance_status': ['exact'],
            'capture_method': ['exact'],
            'user': ['exact'],
        }

    def filter_search(self, queryset, name, value):
        from django.db.models import Q

        return queryset.filter(
            Q(confirmation_number__icontains=value)
            | Q(contact_name__icontains=value)
            | Q(contact_email__icontains=value)
            | Q(company_name__icontains=value)
        )
