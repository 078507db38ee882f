"""
Payment views.
Includes the Stripe webhook endpoint.
"""
import json
import logging
from django.db.models import Q
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt
from rest_framework import viewsets, permissions, status
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response

from apps.bookings.models import Booking
from apps.bookings.serializers import BookingSerializer
from .gateway import StripeGateway
from .models import Payment, PaymentWebhookLog
from .payment_service import PaymentService
from .serializers import (
    PaymentSerializer,
    PaymentIntentSerializer,
    PaymentCreateSerializer,
    PaymentActionSerializer,
    PaymentFilterSerializer,
)

logger = logging.getLogger(__name__)


class PaymentViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for booking payments.
    Guests see their payments, owners see payments for their properties.
    """
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = PaymentSerializer

    def _query_params(self):
        filters = PaymentFilterSerializer(data=self.request.query_params)
        filters.is_valid(raise_exception=True)
        return filters.validated_data

    def get_queryset(self):
        user = self.request.user
        queryset = Payment.objects.select_related('booking', 'user')

        if not user.is_admin_role:
            queryset = queryset.filter(
                Q(user=user) | Q(booking__property__owner=user)
            )

        params = self._query_params()

        # Filter by status
        if params.get('status'):
            queryset = queryset.filter(status=params['status'])

        # Filter by booking
        if params.get('booking'):
            queryset = queryset.filter(booking_id=params['booking'])

        # Filter by method
        if params.get('payment_method'):
            queryset = queryset.filter(payment_method=params['payment_method'])

        return queryset

    def _check_payer(self, booking):
        user = self.request.user
        if not (user.is_admin_role or booking.user_id == user.id):
            raise PermissionDenied('You can only pay for your own bookings.')

    def create(self, request, *args, **kwargs):
        serializer = PaymentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        booking = get_object_or_404(Booking, pk=data['booking_id'])
        self._check_payer(booking)

        payment = PaymentService().initiate(
            booking,
            data['amount'],
            payment_method=data['payment_method'],
            currency=data.get('currency'),
            user=request.user
        )
        return Response(PaymentIntentSerializer(payment).data, status=status.HTTP_201_CREATED)

    def _lookup_for_get(self, request):
        """Find a payment by payment_intent or booking_id query param."""
        params = self._query_params()
        queryset = self.get_queryset()
        if params.get('payment_intent'):
            return queryset.filter(gateway_payment_id=params['payment_intent']).first()
        if params.get('booking_id'):
            return queryset.filter(booking_id=params['booking_id']).first()
        return None

    def _payment_response(self, payment):
        return Response({
            'payment': PaymentSerializer(payment).data,
            'booking': BookingSerializer(payment.booking).data,
        })

    @action(detail=False, methods=['get', 'post'])
    def success(self, request):
        """
        GET: look up a payment after the gateway redirect.
        POST: complete a payment (by payment_id or the booking's pending payment).
        """
        if request.method == 'GET':
            if not (request.query_params.get('payment_intent') or request.query_params.get('booking_id')):
                return Response(
                    {'error': 'payment_intent or booking_id is required.'},
                    status=status.HTTP_400_BAD_REQUEST
                )
            payment = self._lookup_for_get(request)
            if payment is None:
                return Response({'error': 'Payment not found.'}, status=status.HTTP_404_NOT_FOUND)
            return self._payment_response(payment)

        serializer = PaymentActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if data.get('payment_id'):
            payment = get_object_or_404(Payment, pk=data['payment_id'])
        else:
            payment = Payment.objects.filter(
                booking_id=data['booking_id'],
                status__in=[Payment.Status.PENDING, Payment.Status.PROCESSING]
            ).first()
            if payment is None:
                return Response({'error': 'No pending payment for this booking.'}, status=status.HTTP_404_NOT_FOUND)

        self._check_payer(payment.booking)
        payment = PaymentService().confirm_with_gateway(payment)
        return self._payment_response(payment)

    @action(detail=False, methods=['get', 'post'])
    def cancel(self, request):
        """
        GET: look up a payment after the gateway cancel redirect.
        POST: cancel a payment, or all pending payments of a booking.
        """
        if request.method == 'GET':
            payment = self._lookup_for_get(request)
            if payment is None:
                return Response({'error': 'Payment not found.'}, status=status.HTTP_404_NOT_FOUND)
            return self._payment_response(payment)

        serializer = PaymentActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        service = PaymentService()

        if data.get('payment_id'):
            payment = get_object_or_404(Payment, pk=data['payment_id'])
            self._check_payer(payment.booking)
            payment = service.mark_cancelled(payment)
            return self._payment_response(payment)

        booking = get_object_or_404(Booking, pk=data['booking_id'])
        self._check_payer(booking)
        cancelled = service.cancel_pending_for_booking(booking)
        return Response({
            'cancelled': cancelled,
            'booking': BookingSerializer(booking).data,
        })


@method_decorator(csrf_exempt, name='dispatch')
class StripeWebhookView(View):
    """
    Stripe webhook endpoint.
    Verifies the Stripe-Signature header and applies payment intent events.
    """

    def post(self, request):
        webhook_log = None
        try:
            signature = request.headers.get('Stripe-Signature', '')
            event = json.loads(request.body)

            webhook_log = PaymentWebhookLog.objects.create(
                event_id=event.get('id', ''),
                event_type=event.get('type', ''),
                headers={'Stripe-Signature': signature},
                payload=event,
                is_processed=False
            )
            logger.info(f"Payment webhook received: {webhook_log.event_type} ({webhook_log.event_id})")

            gateway = StripeGateway()
            if not gateway.verify_webhook_signature(request.body, signature):
                webhook_log.error_message = 'Webhook signature verification failed'
                webhook_log.save(update_fields=['error_message'])
                return JsonResponse({'error': 'Invalid signature'}, status=400)

            handled = PaymentService(gateway).handle_webhook_event(event)
            if handled:
                webhook_log.is_processed = True
                webhook_log.save(update_fields=['is_processed'])
            else:
                webhook_log.error_message = 'No matching payment'
                webhook_log.save(update_fields=['error_message'])

            return JsonResponse({'received': True})

        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in payment webhook: {e}")
            return JsonResponse({'error': 'Invalid JSON'}, status=400)
        except Exception as e:
            error_msg = f"Unexpected error processing payment webhook: {str(e)}"
            logger.exception(error_msg)
            if webhook_log:
                webhook_log.error_message = error_msg
                webhook_log.save(update_fields=['error_message'])
            # Always acknowledged; the error stays in the webhook log
            return JsonResponse({'received': True})
