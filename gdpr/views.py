"""
Self-service privacy endpoints under /api/gdpr/.

  GET  export/          download my data (JSON)
  POST export/          file an export request
  GET  requests/        my requests (super admins: all, ?user=)
  PATCH requests/{id}/  super admin: set status
  POST delete/          {"confirm": true} erase my account
  GET/POST consent/     list / record consent decisions
"""
from django.db import transaction
from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from core.permissions import is_super_admin

from .models import GdprRequest
from .serializers import (
    ConsentRecordSerializer,
    ConsentUpdateSerializer,
    DeletionRequestSerializer,
    GdprRequestSerializer,
    GdprRequestStatusSerializer,
)
from .services import (
    create_deletion_request,
    create_export_request,
    delete_user_data,
    export_user_data,
    get_consent_records,
    get_user_requests,
    record_consent,
    update_request_status,
)


class ExportView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return Response(export_user_data(request.user))

    def post(self, request):
        gdpr_request = create_export_request(request.user, store=request.user.store, request=request)
        return Response(GdprRequestSerializer(gdpr_request).data, status=status.HTTP_201_CREATED)


class RequestListView(generics.ListAPIView):
    serializer_class = GdprRequestSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        request_type = self.request.query_params.get("type")
        if is_super_admin(self.request.user):
            qs = GdprRequest.objects.all()
            if self.request.query_params.get("user"):
                qs = qs.filter(user_id=self.request.query_params["user"])
            return qs.filter(type=request_type) if request_type else qs
        return get_user_requests(self.request.user, type=request_type)


class RequestStatusView(APIView):
    """Operators move requests through PROCESSING / COMPLETED / FAILED."""

    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, pk):
        if not is_super_admin(request.user):
            self.permission_denied(request, message="Only platform administrators can update requests.")
        gdpr_request = generics.get_object_or_404(GdprRequest, pk=pk)
        serializer = GdprRequestStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        update_request_status(gdpr_request, **serializer.validated_data)
        return Response(GdprRequestSerializer(gdpr_request).data)


class DeleteAccountView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = DeletionRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = request.user
        with transaction.atomic():
            gdpr_request = create_deletion_request(user, store=user.store, request=request)
            delete_user_data(user, request=request)
        gdpr_request.refresh_from_db()
        return Response(GdprRequestSerializer(gdpr_request).data, status=status.HTTP_202_ACCEPTED)


class ConsentView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        records = get_consent_records(request.user)
        return Response(ConsentRecordSerializer(records, many=True).data)

    def post(self, request):
        serializer = ConsentUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        record = record_consent(
            request.user,
            serializer.validated_data["consent_type"],
            serializer.validated_data["granted"],
            store=request.user.store,
            request=request,
        )
        return Response(ConsentRecordSerializer(record).data)
