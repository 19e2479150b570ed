from django.urls import path

from .views import CancelSubscriptionView, ChangePlanView, PlanListView, SubscriptionDetailView

urlpatterns = [
    path("subscriptions/plans/", PlanListView.as_view(), name="subscription-plans"),
    path("subscriptions/<int:store_id>/", SubscriptionDetailView.as_view(), name="subscription-detail"),
    path("subscriptions/<int:store_id>/change-plan/", ChangePlanView.as_view(), name="subscription-change-plan"),
    path("subscriptions/<int:store_id>/cancel/", CancelSubscriptionView.as_view(), name="subscription-cancel"),
]
