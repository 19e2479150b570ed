from rest_framework import serializers
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from audit.services import log_event
from core.permissions import IsStoreAdmin
from core.views import StoreScopedMixin
from stores.models import Store

from .choices import SubscriptionPlan
from .plans import get_all_plans
from .services import cancel_subscription, change_plan, get_usage_stats


class ChangePlanSerializer(serializers.Serializer):
    plan = serializers.ChoiceField(choices=SubscriptionPlan.choices)


class PlanListView(APIView):
    """GET /api/subscriptions/plans/ - public plan catalogue."""

    permission_classes = [AllowAny]

    def get(self, request):
        return Response(get_all_plans())


class StoreSubscriptionMixin(StoreScopedMixin):
    permission_classes = [IsStoreAdmin]

    def get_store(self, store_id):
        return self.scope.get(Store.objects.alive(), pk=store_id, message="Store not found.")


class SubscriptionDetailView(StoreSubscriptionMixin, APIView):
    """GET /api/subscriptions/{store_id}/ - plan, status and usage."""

    def get(self, request, store_id):
        return Response(get_usage_stats(self.get_store(store_id)))


class ChangePlanView(StoreSubscriptionMixin, APIView):
    """POST /api/subscriptions/{store_id}/change-plan/"""

    def post(self, request, store_id):
        store = self.get_store(store_id)
        serializer = ChangePlanSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        previous = store.subscription_plan
        change_plan(store, serializer.validated_data["plan"])
        log_event(
            store=store, user=request.user, action="subscription.plan_changed",
            entity=store, entity_id=store.pk,
            changes={"from": previous, "to": store.subscription_plan}, request=request,
        )
        return Response(get_usage_stats(store))


class CancelSubscriptionView(StoreSubscriptionMixin, APIView):
    """POST /api/subscriptions/{store_id}/cancel/"""

    def post(self, request, store_id):
        store = cancel_subscription(self.get_store(store_id))
        log_event(
            store=store, user=request.user, action="subscription.canceled",
            entity=store, entity_id=store.pk, request=request,
        )
        return Response(get_usage_stats(store))
