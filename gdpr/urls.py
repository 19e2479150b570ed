from django.urls import path

from .views import ConsentView, DeleteAccountView, ExportView, RequestListView, RequestStatusView

urlpatterns = [
    path("gdpr/export/", ExportView.as_view(), name="gdpr-export"),
    path("gdpr/requests/", RequestListView.as_view(), name="gdpr-requests"),
    path("gdpr/requests/<int:pk>/", RequestStatusView.as_view(), name="gdpr-request-status"),
    path("gdpr/delete/", DeleteAccountView.as_view(), name="gdpr-delete"),
    path("gdpr/consent/", ConsentView.as_view(), name="gdpr-consent"),
]
