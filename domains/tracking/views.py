# domains/tracking/views.py
import logging

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import parsers, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .adapters.registry import build_registry
from .exceptions import (
    CarrierAlreadyAssigned,
    CarrierUndetermined,
    CarrierUnavailable,
    CarrierUnsupported,
    InvalidTransition,
    TrackingError,
    TrackingRequestNotFound,
)
from .filters import TrackingRequestFilter
from .links import tracking_url
from .serializers import (
    AssignCarrierSerializer,
    ExternalStatusSerializer,
    ExternalTrackSerializer,
    SubmitTrackingSerializer,
    TrackingRequestSerializer,
    UpdateDescriptionSerializer,
    next_steps,
)
from .services import SubmitResult, TrackingService

logger = logging.getLogger(__name__)


def get_service() -> TrackingService:
    return TrackingService(build_registry())


def _owner(request) -> str:
    return str(request.user.pk)


# --------------------------------------------------------------------
# domain error -> HTTP
# --------------------------------------------------------------------
def error_response(exc: TrackingError) -> Response:
    if isinstance(exc, (CarrierUnavailable, CarrierUnsupported)):
        return Response(
            {"detail": str(exc), "available_carriers": exc.available},
            status=status.HTTP_400_BAD_REQUEST,
        )
    if isinstance(exc, CarrierUndetermined):
        return Response(
            {
                "detail": str(exc),
                "suggestion": "Specify the carrier, or submit with defer_carrier=true",
            },
            status=status.HTTP_400_BAD_REQUEST,
        )
    if isinstance(exc, CarrierAlreadyAssigned):
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, TrackingRequestNotFound):
        return Response({"detail": "Tracking request not found"}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, InvalidTransition):
        return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
    logger.error("Unmapped tracking error: %s", exc)
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


def duplicate_response(outcome: SubmitResult) -> Response:
    existing = outcome.request
    return Response(
        {
            "detail": "Tracking number already exists for this user",
            "tracking_id": str(existing.pk),
            "state": existing.state,
            "has_carrier": bool(existing.carrier),
        },
        status=status.HTTP_409_CONFLICT,
    )


# --------------------------------------------------------------------
# GET  /api/v1/tracking/   (list; page, size, state, carrier)
# POST /api/v1/tracking/   (submit)
# --------------------------------------------------------------------
class TrackingListCreateAPI(APIView):
    parser_classes = [parsers.JSONParser]
    permission_classes = [permissions.IsAuthenticated]

    @extend_schema(
        parameters=[
            OpenApiParameter(name="page", required=False, type=int, description="page number (1-base)"),
            OpenApiParameter(name="size", required=False, type=int, description="page size"),
            OpenApiParameter(name="state", required=False, type=str),
            OpenApiParameter(name="carrier", required=False, type=str),
        ],
        responses={200: TrackingRequestSerializer(many=True)},
    )
    def get(self, request):
        try:
            page = max(int(request.query_params.get("page") or 1), 1)
            size = max(min(int(request.query_params.get("size") or 10), 100), 1)
        except ValueError:
            return Response({"detail": "page and size must be integers"}, status=400)

        qs = get_service().list(_owner(request))
        filterset = TrackingRequestFilter(request.query_params, queryset=qs)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        qs = filterset.qs

        total = qs.count()
        start = (page - 1) * size
        rows = qs[start:start + size]
        data = TrackingRequestSerializer(rows, many=True).data
        return Response(
            {"total": total, "page": page, "size": size, "results": data},
            status=status.HTTP_200_OK,
        )

    @extend_schema(request=SubmitTrackingSerializer, responses={201: TrackingRequestSerializer})
    def post(self, request):
        ser = SubmitTrackingSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        try:
            outcome = get_service().submit(
                _owner(request),
                data["tracking_number"],
                carrier=data.get("carrier"),
                metadata=ser.to_metadata(),
                defer_carrier=data["defer_carrier"],
            )
        except TrackingError as e:
            return error_response(e)

        if outcome.duplicate:
            return duplicate_response(outcome)
        return Response(
            TrackingRequestSerializer(outcome.request).data, status=status.HTTP_201_CREATED
        )


# --------------------------------------------------------------------
# GET / PATCH / DELETE /api/v1/tracking/{id}/
# --------------------------------------------------------------------
class TrackingDetailAPI(APIView):
    parser_classes = [parsers.JSONParser]
    permission_classes = [permissions.IsAuthenticated]

    @extend_schema(responses={200: TrackingRequestSerializer})
    def get(self, request, id):
        try:
            obj = get_service().get(_owner(request), id)
        except TrackingError as e:
            return error_response(e)
        return Response(TrackingRequestSerializer(obj).data, status=status.HTTP_200_OK)

    @extend_schema(request=UpdateDescriptionSerializer, responses={200: TrackingRequestSerializer})
    def patch(self, request, id):
        ser = UpdateDescriptionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            obj = get_service().update_description(
                _owner(request), id, ser.validated_data["description"]
            )
        except TrackingError as e:
            return error_response(e)
        return Response(TrackingRequestSerializer(obj).data, status=status.HTTP_200_OK)

    @extend_schema(responses={204: None})
    def delete(self, request, id):
        try:
            get_service().delete(_owner(request), id)
        except TrackingError as e:
            return error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)


# --------------------------------------------------------------------
# PUT /api/v1/tracking/{id}/carrier/   body: {carrier}
# --------------------------------------------------------------------
class AssignCarrierAPI(APIView):
    parser_classes = [parsers.JSONParser]
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = TrackingRequestSerializer

    def owner_for(self, request) -> str:
        return _owner(request)

    @extend_schema(request=AssignCarrierSerializer, responses={200: TrackingRequestSerializer})
    def put(self, request, id):
        ser = AssignCarrierSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            outcome = get_service().assign_carrier(
                self.owner_for(request), id, ser.validated_data["carrier"]
            )
        except TrackingError as e:
            return error_response(e)

        if outcome.duplicate:
            return duplicate_response(outcome)
        return Response(self.serializer_class(outcome.request).data, status=status.HTTP_200_OK)


# --------------------------------------------------------------------
# GET /api/v1/tracking/{id}/url/
# --------------------------------------------------------------------
class TrackingUrlAPI(APIView):
    permission_classes = [permissions.IsAuthenticated]

    @extend_schema(responses={200: dict})
    def get(self, request, id):
        try:
            obj = get_service().get(_owner(request), id)
        except TrackingError as e:
            return error_response(e)

        url = tracking_url(obj.carrier, obj.tracking_number)
        if url is None:
            return Response(
                {"detail": "Carrier not set; no tracking page available"},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(
            {"tracking_url": url, "carrier": obj.carrier, "tracking_number": obj.tracking_number},
            status=status.HTTP_200_OK,
        )


# --------------------------------------------------------------------
# GET /api/v1/tracking/carriers/   (public)
# --------------------------------------------------------------------
class CarriersAPI(APIView):
    permission_classes = [permissions.AllowAny]

    @extend_schema(responses={200: dict})
    def get(self, request):
        registry = build_registry()
        carriers = [
            {"name": name, **flags} for name, flags in registry.status().items()
        ]
        return Response(
            {
                "carriers": carriers,
                "available": registry.available_carriers(),
                "message": "Use these carrier names when submitting tracking requests",
            },
            status=status.HTTP_200_OK,
        )


# --------------------------------------------------------------------
# GET /api/v1/tracking/overview/   (dashboard counts)
# --------------------------------------------------------------------
class OverviewAPI(APIView):
    permission_classes = [permissions.IsAuthenticated]

    @extend_schema(responses={200: dict})
    def get(self, request):
        return Response(get_service().overview(_owner(request)), status=status.HTTP_200_OK)


# ====================================================================
# External-app surface  /api/v1/external/
# Callers may act on behalf of their own users via user_id; those owners
# are namespaced under the calling account.
# ====================================================================
def _external_owner(request, user_id=None) -> str:
    user_id = user_id or request.query_params.get("user_id")
    if not user_id:
        return _owner(request)
    return f"ext:{request.user.pk}:{user_id}"


class ExternalTrackAPI(APIView):
    parser_classes = [parsers.JSONParser]
    permission_classes = [permissions.IsAuthenticated]

    @extend_schema(request=ExternalTrackSerializer, responses={201: ExternalStatusSerializer})
    def post(self, request):
        ser = ExternalTrackSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        try:
            outcome = get_service().submit(
                _external_owner(request, data.get("user_id")),
                data["tracking_number"],
                carrier=data.get("carrier"),
                metadata=ser.to_metadata(),
                defer_carrier=data["defer_carrier"],
            )
        except TrackingError as e:
            return error_response(e)

        if outcome.duplicate:
            return duplicate_response(outcome)

        obj = outcome.request
        has_carrier = bool(obj.carrier)
        return Response(
            {
                "tracking_id": str(obj.pk),
                "state": obj.state,
                "has_carrier": has_carrier,
                "message": (
                    "Tracking request created successfully"
                    if has_carrier
                    else "Tracking request created. Carrier not detected; assign one to start processing."
                ),
                "next_steps": next_steps(obj),
                "request": ExternalStatusSerializer(obj).data,
            },
            status=status.HTTP_201_CREATED,
        )


class ExternalAssignCarrierAPI(AssignCarrierAPI):
    serializer_class = ExternalStatusSerializer

    def owner_for(self, request) -> str:
        return _external_owner(request, (request.data or {}).get("user_id"))


class ExternalStatusAPI(APIView):
    permission_classes = [permissions.IsAuthenticated]

    @extend_schema(
        parameters=[OpenApiParameter(name="user_id", required=False, type=str)],
        responses={200: ExternalStatusSerializer},
    )
    def get(self, request, id):
        try:
            obj = get_service().get(_external_owner(request), id)
        except TrackingError as e:
            return error_response(e)
        return Response(ExternalStatusSerializer(obj).data, status=status.HTTP_200_OK)
