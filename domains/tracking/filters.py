# domains/tracking/filters.py
import django_filters as df

from .models import Carrier, RequestState, TrackingRequest


class TrackingRequestFilter(df.FilterSet):
    state = df.ChoiceFilter(choices=RequestState.choices)
    carrier = df.ChoiceFilter(choices=Carrier.choices)
    tracking_number = df.CharFilter(lookup_expr="icontains")

    class Meta:
        model = TrackingRequest
        fields = ["state", "carrier", "tracking_number"]
