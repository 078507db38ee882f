"""
Accounts views: registration, login, the current user and logout.
"""
import logging

from rest_framework import generics, status, permissions
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView
from django.contrib.auth import get_user_model

from .serializers import (
    UserSerializer,
    UserCreateSerializer,
    CurrentUserSerializer,
    MarketplaceTokenObtainPairSerializer,
    onboarding_steps,
)

User = get_user_model()
logger = logging.getLogger(__name__)


class RegisterView(generics.CreateAPIView):
    """
    Sign up as a guest, owner, agent or developer.
    Returns tokens and the onboarding steps for the chosen role.
    """
    queryset = User.objects.all()
    permission_classes = [permissions.AllowAny]
    serializer_class = UserCreateSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info(f"Registered user {user.email} ({user.role})")

        refresh = MarketplaceTokenObtainPairSerializer.get_token(user)

        return Response({
            'user': UserSerializer(user).data,
            'tokens': {
                'refresh': str(refresh),
                'access': str(refresh.access_token),
            },
            'onboarding': onboarding_steps(user),
        }, status=status.HTTP_201_CREATED)


class LoginView(TokenObtainPairView):
    """Email/password login returning tokens, the user and pending onboarding steps."""
    serializer_class = MarketplaceTokenObtainPairSerializer


class CurrentUserView(generics.RetrieveUpdateAPIView):
    """The authenticated user with attached agent/developer profiles."""
    serializer_class = CurrentUserSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_object(self):
        return self.request.user

    def retrieve(self, request, *args, **kwargs):
        data = self.get_serializer(self.get_object()).data
        data['onboarding'] = onboarding_steps(request.user)
        return Response(data)


class LogoutView(APIView):
    """Logout by blacklisting the refresh token."""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        refresh_token = request.data.get('refresh')
        if not refresh_token:
            return Response({'refresh': ['This field is required.']}, status=status.HTTP_400_BAD_REQUEST)
        try:
            RefreshToken(refresh_token).blacklist()
        except TokenError:
            return Response({'detail': 'Invalid token.'}, status=status.HTTP_400_BAD_REQUEST)
        logger.info(f"User logged out: {request.user.email}")
        return Response({'detail': 'Successfully logged out.'}, status=status.HTTP_200_OK)
